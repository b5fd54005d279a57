"""Entry point for 'python -m docbase' command."""

from docbase.cli import main

if __name__ == "__main__":
    main()
