"""
DLang Standard Library
Console output and the typed read primitives
"""

import re
import sys
from collections import deque
from typing import Any, Deque, Optional, TextIO

INTEGER_PATTERN = re.compile(r'[+-]?\d+', re.ASCII)
REAL_PATTERN = re.compile(r'[+-]?(\d+(\.\d*)?|\.\d+)', re.ASCII)
# Whole numbers below this print in positional notation
WHOLE_NUMBER_LIMIT = 1e21


def display(value: Any) -> str:
    """Printed form of a runtime value"""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < WHOLE_NUMBER_LIMIT:
            return str(int(value))
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(display(item) for item in value) + "]"
    return str(value)


class Console:
    """Standard output plus whitespace-delimited token input.

    Input is consumed one token at a time; the rest of a line stays buffered
    for the next read.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.pending: Deque[str] = deque()

    def print(self, text: str):
        self.stdout.write(text + "\n")
        self.stdout.flush()

    def next_token(self) -> str:
        while not self.pending:
            line = self.stdin.readline()
            if line == "":
                raise EOFError("unexpected end of input")
            self.pending.extend(line.split())
        return self.pending.popleft()

    def read_int(self) -> float:
        token = self.next_token()
        if not INTEGER_PATTERN.fullmatch(token):
            raise ValueError(f"Cannot convert '{token}' to int")
        try:
            # All numbers share one float representation
            return float(int(token))
        except (OverflowError, ValueError):
            raise ValueError(f"Cannot convert '{token}' to int")

    def read_real(self) -> float:
        token = self.next_token()
        if not REAL_PATTERN.fullmatch(token):
            raise ValueError(f"Cannot convert '{token}' to real")
        return float(token)

    def read_string(self) -> str:
        return self.next_token()
