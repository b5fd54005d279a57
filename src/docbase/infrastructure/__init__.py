"""Infrastructure layer - document formats and host-facing adapters.

This layer converts between the stored document shape and the domain
entities. Persistence itself belongs to the host.
"""
