"""
DLang diagnostics
Formats lexical, syntax, resolution and runtime errors and records whether any occurred
"""

import sys
from typing import Optional, TextIO, TYPE_CHECKING

from termcolor import colored

if TYPE_CHECKING:
    from .lexer import Token


class ErrorReporter:
    """Diagnostic channel shared by every stage of one run.

    `had_error` is set by lexical, syntax and resolution errors and tells the
    caller not to execute the program. `had_runtime_error` is set when
    execution was aborted.
    """
    ERROR = "red"

    def __init__(self, stream: Optional[TextIO] = None, color: bool = False):
        self.stream = stream if stream is not None else sys.stderr
        self.color = color
        self.had_error = False
        self.had_runtime_error = False

    def reset(self):
        self.had_error = False
        self.had_runtime_error = False

    def error(self, line: int, column: int, message: str):
        """Report an error that is not attached to a token (lexical errors)."""
        self.had_error = True
        self.emit(line, column, "error", message)

    def token_error(self, token: 'Token', message: str):
        """Report a syntax or resolution error at `token`."""
        self.had_error = True
        # Only the end-of-file token has an empty lexeme
        if token.lexeme == '':
            label = "error at end"
        else:
            label = f"error at '{token.lexeme}'"
        self.emit(token.line, token.column, label, message)

    def runtime_error(self, token: Optional['Token'], message: str):
        self.had_runtime_error = True
        if token is None:
            self.emit(None, None, "runtime error", message)
        else:
            self.emit(token.line, token.column, "runtime error", message)

    def emit(self, line: Optional[int], column: Optional[int], label: str, message: str):
        location = f"{line}:{column}: " if line is not None else ""
        label = f"{label}: "
        if self.color:
            location = colored(location, attrs=["bold"])
            label = colored(label, ErrorReporter.ERROR, attrs=["bold"])
        print(location + label + message, file=self.stream)
