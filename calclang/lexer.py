"""Tokenizer for calclang.

Source text is split into tokens by a Lark ``basic`` lexer built from a
terminal-only grammar. The raw Lark tokens are then normalized into the
stream the parser expects:

1. Identifiers that spell a keyword are reclassified (``if``, ``print``,
   ``int`` ...).
2. Runs of newlines (blank lines, comment-only lines) collapse into one
   ``NEWLINE`` and leading newlines are dropped, so every statement ends
   with exactly one ``NEWLINE`` token.
3. A final ``NEWLINE`` is added when the source does not end with one,
   followed by a single ``EOF`` token.

The ``tokenize`` function is the public entry point.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import ParseError


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.type} {self.value!r}"


KEYWORDS = {
    'int': 'INTEGER_DECL',
    'integer': 'INTEGER_DECL',
    'real': 'REAL_DECL',
    'print': 'PRINT',
    'scanf': 'SCANF',
    'if': 'IF',
    'endif': 'ENDIF',
    'while': 'WHILE',
    'endwhile': 'ENDWHILE',
    'class': 'CLASS',
    'endclass': 'ENDCLASS',
    'derived': 'DERIVED',
    'def': 'DEF',
    'enddef': 'ENDDEF',
    'public': 'PUBLIC',
    'private': 'PRIVATE',
    'protected': 'PROTECTED',
    'is': 'IS',
    'isnot': 'ISNOT',
}


CALC_TOKENS = r"""
    start: (NEWLINE | REALLIT | INTLIT | IDENTIFIER | STRING | ARROW
           | PLUS | MINUS | TIMES | DIVIDE | POW | EQUAL | LT | GT
           | LPAREN | RPAREN | LBRACKET | RBRACKET | DOT | COMMA)*

    NEWLINE: /\r?\n/
    REALLIT.2: /\d+\.\d*/ | /\.\d+/
    INTLIT: /\d+/
    IDENTIFIER: /[A-Za-z_][A-Za-z0-9_]*/
    STRING: /"[^"\n]*"/
    ARROW: "->"
    PLUS: "+"
    MINUS: "-"
    TIMES: "*"
    DIVIDE: "/"
    POW: "^"
    EQUAL: "="
    LT: "<"
    GT: ">"
    LPAREN: "("
    RPAREN: ")"
    LBRACKET: "["
    RBRACKET: "]"
    DOT: "."
    COMMA: ","

    COMMENT: /#[^\n]*/
    %ignore COMMENT
    %ignore /[ \t\f]+/
"""


CALC_LEXER = Lark(
    CALC_TOKENS,
    parser='lalr',
    lexer='basic',
)


def _raw_tokens(source: str) -> Iterator[Token]:
    try:
        for tok in CALC_LEXER.lex(source):
            kind = tok.type
            value = str(tok)
            if kind == 'IDENTIFIER':
                kind = KEYWORDS.get(value, kind)
            elif kind == 'STRING':
                value = value[1:-1]
            yield Token(kind, value, tok.line or 0, tok.column or 0)
    except UnexpectedCharacters as e:
        raise ParseError(Token('ERROR', e.char, e.line, e.column)) from None


def tokenize(source: str) -> List[Token]:
    """Convert source text into a list of tokens ending with EOF."""
    tokens: List[Token] = []
    line = 1
    for tok in _raw_tokens(source):
        line = tok.line
        if tok.type == 'NEWLINE':
            if not tokens or tokens[-1].type == 'NEWLINE':
                continue
        tokens.append(tok)
    if tokens and tokens[-1].type != 'NEWLINE':
        last = tokens[-1]
        tokens.append(Token('NEWLINE', '\n', last.line, last.column + len(last.value)))
        line = last.line
    tokens.append(Token('EOF', '', line + 1, 1))
    return tokens
