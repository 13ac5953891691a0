"""
DLang Programming Language
Lexer, parser, resolver and tree-walking interpreter
"""

import sys
import logging
from typing import Optional

from .errors import ErrorReporter
from .lexer import Lexer
from .parser import Parser
from .resolver import Resolver
from .interpreter import Interpreter
from .stdlib.console import Console

__version__ = "1.0.0"

# Each script call costs about a dozen Python frames
DEFAULT_RECURSION_LIMIT = 10000

logger = logging.getLogger(__name__)


def run(source: str, console: Optional[Console] = None,
        reporter: Optional[ErrorReporter] = None,
        recursion_limit: int = DEFAULT_RECURSION_LIMIT) -> ErrorReporter:
    """Scan, parse, resolve and execute `source`.

    Execution is skipped when any lexical, syntax or resolution error was
    reported. The returned reporter carries the error flags. While the
    program executes, the Python recursion limit is raised to at least
    `recursion_limit` and restored afterwards.
    """
    reporter = reporter if reporter is not None else ErrorReporter()

    tokens = Lexer(source, reporter).tokenize()
    program = Parser(tokens, reporter).parse()
    if reporter.had_error:
        logger.debug("syntax errors reported, not resolving")
        return reporter

    resolution = Resolver(reporter).resolve(program)
    if reporter.had_error:
        logger.debug("resolution errors reported, not executing")
        return reporter

    previous_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous_limit, recursion_limit))
    try:
        Interpreter(reporter, console).interpret(program, resolution)
    finally:
        sys.setrecursionlimit(previous_limit)
    return reporter
