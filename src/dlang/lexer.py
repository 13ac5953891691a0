"""
DLang Lexer
Tokenizes source code into a stream of tokens
"""

import logging
from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, List, Optional

from .errors import ErrorReporter

logger = logging.getLogger(__name__)


class TokenType(Enum):
    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENTIFIER = auto()

    # Keywords
    AND = auto()
    OR = auto()
    XOR = auto()
    NOT = auto()
    VAR = auto()
    FOR = auto()
    IF = auto()
    ELSE = auto()
    END = auto()
    THEN = auto()
    WHILE = auto()
    LOOP = auto()
    FUNC = auto()
    IS = auto()
    EMPTY = auto()
    INT = auto()
    REAL = auto()
    BOOL = auto()
    STRING_TYPE = auto()
    TRUE = auto()
    FALSE = auto()
    PRINT = auto()
    RETURN = auto()
    READ_INT = auto()
    READ_REAL = auto()
    READ_STRING = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()

    # Comparison
    EQUAL = auto()
    NOT_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()

    # Assignment
    ASSIGN = auto()

    # Punctuation
    SEMICOLON = auto()
    COMMA = auto()
    DOT = auto()
    LAMBDA = auto()
    RANGE = auto()

    # Brackets
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    LEFT_BRACKET = auto()
    RIGHT_BRACKET = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: Any
    line: int
    column: int


KEYWORDS = {
    'and': TokenType.AND,
    'or': TokenType.OR,
    'xor': TokenType.XOR,
    'not': TokenType.NOT,
    'var': TokenType.VAR,
    'for': TokenType.FOR,
    'if': TokenType.IF,
    'else': TokenType.ELSE,
    'end': TokenType.END,
    'then': TokenType.THEN,
    'while': TokenType.WHILE,
    'loop': TokenType.LOOP,
    'func': TokenType.FUNC,
    'is': TokenType.IS,
    'empty': TokenType.EMPTY,
    'int': TokenType.INT,
    'real': TokenType.REAL,
    'bool': TokenType.BOOL,
    'string': TokenType.STRING_TYPE,
    'true': TokenType.TRUE,
    'false': TokenType.FALSE,
    'print': TokenType.PRINT,
    'return': TokenType.RETURN,
    'readInt': TokenType.READ_INT,
    'readReal': TokenType.READ_REAL,
    'readString': TokenType.READ_STRING,
    # `for i in 1..10` is spelled as an assignment
    'in': TokenType.ASSIGN,
}

OPERATORS = {
    ':=': TokenType.ASSIGN,
    '<=': TokenType.LESS_EQUAL,
    '>=': TokenType.GREATER_EQUAL,
    '/=': TokenType.NOT_EQUAL,
    '=>': TokenType.LAMBDA,
}

SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    '[': TokenType.LEFT_BRACKET,
    ']': TokenType.RIGHT_BRACKET,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '=': TokenType.EQUAL,
    '<': TokenType.LESS,
    '>': TokenType.GREATER,
}


def is_digit(char: Optional[str]) -> bool:
    # ASCII only; str.isdigit also accepts characters such as superscripts
    return char is not None and '0' <= char <= '9'


class Lexer:
    def __init__(self, source: str, reporter: Optional[ErrorReporter] = None):
        self.source = source
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.position = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    def current_char(self) -> Optional[str]:
        if self.position >= len(self.source):
            return None
        return self.source[self.position]

    def peek_char(self, offset: int = 1) -> Optional[str]:
        peek_pos = self.position + offset
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def advance(self) -> Optional[str]:
        char = self.current_char()
        self.position += 1
        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def add_token(self, token_type: TokenType, lexeme: str, line: int, column: int,
                  literal: Any = None):
        self.tokens.append(Token(token_type, lexeme, literal, line, column))

    def skip_whitespace(self):
        while self.current_char() and self.current_char() in ' \t\r\n':
            self.advance()

    def skip_comment(self):
        while self.current_char() and self.current_char() != '\n':
            self.advance()

    def read_string(self, line: int, column: int) -> Optional[str]:
        """Read the raw text between double quotes; newlines are allowed."""
        self.advance()  # Skip opening quote
        start = self.position

        while self.current_char() and self.current_char() != '"':
            self.advance()

        if self.current_char() is None:
            self.reporter.error(line, column, "Unterminated string.")
            return None

        value = self.source[start:self.position]
        self.advance()  # Skip closing quote
        return value

    def read_number(self) -> str:
        start = self.position
        while is_digit(self.current_char()):
            self.advance()

        # A dot only belongs to the number when digits follow, so `1..5` stays a range
        peek = self.peek_char()
        if self.current_char() == '.' and is_digit(peek):
            self.advance()
            while is_digit(self.current_char()):
                self.advance()

        return self.source[start:self.position]

    def read_identifier(self) -> str:
        start = self.position
        while self.current_char() and (self.current_char().isalnum() or self.current_char() == '_'):
            self.advance()
        return self.source[start:self.position]

    def last_identifier(self) -> Optional[Token]:
        for token in reversed(self.tokens):
            if token.type == TokenType.IDENTIFIER:
                return token
        return None

    def expand_range(self, line: int, column: int):
        """Rewrite `..` into the increment and condition of a counted loop.

        `for i in 1..10` becomes `for i := 1; i := i + 1; i < 10`.
        """
        identifier = self.last_identifier()
        if identifier is None:
            self.add_token(TokenType.RANGE, '..', line, column)
            return

        name = identifier.lexeme
        self.add_token(TokenType.SEMICOLON, ';', line, column)
        self.add_token(TokenType.IDENTIFIER, name, line, column)
        self.add_token(TokenType.ASSIGN, ':=', line, column)
        self.add_token(TokenType.IDENTIFIER, name, line, column)
        self.add_token(TokenType.PLUS, '+', line, column)
        self.add_token(TokenType.NUMBER, '1', line, column, 1.0)
        self.add_token(TokenType.SEMICOLON, ';', line, column)
        self.add_token(TokenType.IDENTIFIER, name, line, column)
        self.add_token(TokenType.LESS, '<', line, column)

    def tokenize(self) -> List[Token]:
        while True:
            self.skip_whitespace()

            char = self.current_char()
            if char is None:
                break

            start_line = self.line
            start_column = self.column

            # Comments
            if char == '/' and self.peek_char() == '/':
                self.skip_comment()
                continue

            # Strings
            if char == '"':
                value = self.read_string(start_line, start_column)
                if value is not None:
                    self.add_token(TokenType.STRING, f'"{value}"', start_line, start_column, value)
                continue

            # Numbers
            if is_digit(char):
                number = self.read_number()
                self.add_token(TokenType.NUMBER, number, start_line, start_column, float(number))
                continue

            # Identifiers and keywords
            if char.isalpha() or char == '_':
                identifier = self.read_identifier()
                token_type = KEYWORDS.get(identifier, TokenType.IDENTIFIER)
                self.add_token(token_type, identifier, start_line, start_column)
                continue

            # Range
            if char == '.' and self.peek_char() == '.':
                self.advance()
                self.advance()
                self.expand_range(start_line, start_column)
                continue

            # Multi-character operators
            two_char = char + (self.peek_char() or '')
            if two_char in OPERATORS:
                self.advance()
                self.advance()
                self.add_token(OPERATORS[two_char], two_char, start_line, start_column)
                continue

            # Single character tokens
            if char in SINGLE_CHAR_TOKENS:
                self.advance()
                self.add_token(SINGLE_CHAR_TOKENS[char], char, start_line, start_column)
                continue

            # Unknown character: report and keep scanning
            self.advance()
            self.reporter.error(start_line, start_column, f"Unexpected character '{char}'.")

        self.add_token(TokenType.EOF, '', self.line, self.column)
        logger.debug("scanned %d tokens", len(self.tokens))
        return self.tokens
