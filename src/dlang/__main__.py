#!/usr/bin/env python3
"""
DLang Programming Language
Main entry point for the interpreter
"""

import sys
import logging
import argparse

from . import DEFAULT_RECURSION_LIMIT, __version__, run
from .errors import ErrorReporter


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog='dlang', description='DLang Programming Language Interpreter')
    parser.add_argument('file', help='DLang source file to execute')
    parser.add_argument('--version', action='version', version=f'DLang {__version__}')
    parser.add_argument('--debug', action='store_true', help='Log pipeline progress to stderr')
    parser.add_argument('--no-color', action='store_true', help='Disable colored diagnostics')
    parser.add_argument('--recursion-limit', type=int, default=DEFAULT_RECURSION_LIMIT,
                        help='Minimum Python recursion limit while the script runs, bounds how deep calls may nest')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(name)s: %(message)s',
    )

    try:
        with open(args.file, 'r', encoding='utf-8') as f:
            source = f.read()
    except OSError as e:
        print(f"Error: cannot read '{args.file}': {e.strerror}", file=sys.stderr)
        return 1

    reporter = ErrorReporter(sys.stderr, color=not args.no_color and sys.stderr.isatty())
    run(source, reporter=reporter, recursion_limit=args.recursion_limit)

    if reporter.had_error or reporter.had_runtime_error:
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
