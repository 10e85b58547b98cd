"""CLI entry point for the calclang interpreter.

Usage:
    python -m calclang [-v|-vv|-vvv] <program_file>
    python -m calclang --dump-ast <program_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --dump-ast    Parse the program and print its syntax tree instead of running it

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Parse and runtime errors are reported on
stderr and end the process with exit status 1.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .ast_dump import format_tree
from .errors import CalcError, ParseError
from .interpreter import Interpreter
from .parser import parse_program


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="calclang interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--dump-ast', action='store_true', help='print the parsed syntax tree and exit')
    parser.add_argument('--debug-file', default='debug.txt', help='file receiving debug output (default: debug.txt)')
    parser.add_argument('program', help='calclang program file to execute')
    args = parser.parse_args(argv)

    program_file = Path(args.program)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        source = f.read()

    try:
        ast_program = parse_program(source)
    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.dump_ast:
        print(format_tree(ast_program))
        return

    interpreter = Interpreter(debug_level=args.v, debug_file=args.debug_file)
    try:
        interpreter.run(ast_program)
    except CalcError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
