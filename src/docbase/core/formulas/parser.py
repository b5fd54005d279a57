"""Parser for arithmetic formula expressions."""

from .ast import BinaryOp, Node, Number, UnaryOp
from .exceptions import FormulaSyntaxError
from .lexer import Lexer, Token, TokenType

ADDITIVE_OPERATORS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
}

MULTIPLICATIVE_OPERATORS = {
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
}


class Parser:
    """Recursive descent parser for arithmetic expressions.

    Grammar::

        expression := term (("+" | "-") term)*
        term       := power (("*" | "/" | "%") power)*
        power      := unary | atom ("**" power)?
        unary      := ("+" | "-") (unary | atom)
        atom       := INTEGER | FLOAT | "(" expression ")"

    As in JavaScript, a signed operand cannot be the base of ``**``
    without parentheses, and adjacent ``++``/``--`` are rejected.
    """

    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.current_token: Token = self.lexer.get_next_token()

    def error(self, message: str) -> None:
        """Raise a syntax error."""
        raise FormulaSyntaxError(message, self.current_token.position)

    def consume(self, token_type: TokenType) -> None:
        """Consume the current token if it matches the expected type."""
        if self.current_token.type == token_type:
            self.current_token = self.lexer.get_next_token()
        else:
            self.error(f"Expected {token_type.name}, found {self.current_token.type.name}")

    def parse(self) -> Node:
        """Parse the entire expression."""
        node = self.expression()
        if self.current_token.type != TokenType.EOF:
            self.error("Unexpected token after expression")
        return node

    def expression(self) -> Node:
        """Parse addition and subtraction."""
        node = self.term()

        while self.current_token.type in ADDITIVE_OPERATORS:
            token = self.current_token
            self.consume(token.type)
            right = self.term()
            node = BinaryOp(left=node, operator=ADDITIVE_OPERATORS[token.type], right=right)

        return node

    def term(self) -> Node:
        """Parse multiplication, division and remainder."""
        node = self.power()

        while self.current_token.type in MULTIPLICATIVE_OPERATORS:
            token = self.current_token
            self.consume(token.type)
            right = self.power()
            node = BinaryOp(left=node, operator=MULTIPLICATIVE_OPERATORS[token.type], right=right)

        return node

    def power(self) -> Node:
        """Parse exponentiation (right-associative)."""
        if self.current_token.type in ADDITIVE_OPERATORS:
            node = self.unary()
            if self.current_token.type == TokenType.POWER:
                self.error("Signed base of '**' must be parenthesised")
            return node

        node = self.atom()

        if self.current_token.type == TokenType.POWER:
            self.consume(TokenType.POWER)
            node = BinaryOp(left=node, operator="**", right=self.power())

        return node

    def unary(self) -> Node:
        """Parse leading signs."""
        token = self.current_token
        self.consume(token.type)

        if self.current_token.type in ADDITIVE_OPERATORS:
            operand = self.unary()
        else:
            operand = self.atom()
        return UnaryOp(operator=ADDITIVE_OPERATORS[token.type], operand=operand)

    def atom(self) -> Node:
        """Parse numeric literals and parenthesised groups."""
        token = self.current_token

        if token.type == TokenType.INTEGER:
            self.consume(TokenType.INTEGER)
            return Number(token.value)

        if token.type == TokenType.FLOAT:
            self.consume(TokenType.FLOAT)
            return Number(token.value)

        if token.type == TokenType.LPAREN:
            self.consume(TokenType.LPAREN)
            node = self.expression()
            self.consume(TokenType.RPAREN)
            return node

        self.error(f"Unexpected token: {token.type.name}")
        return Node() # Should not reach here
