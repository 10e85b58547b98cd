# calclang language package
# This package provides a parser and tree-walking interpreter for calclang.
from .interpreter import run_program, run_file, Interpreter
from .parser import parse_program
from .errors import CalcError, ParseError

__all__ = [
    'run_program',
    'run_file',
    'parse_program',
    'Interpreter',
    'CalcError',
    'ParseError',
]
