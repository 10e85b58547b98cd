from typing import Optional, TYPE_CHECKING

from calclang.types import ErrorVal

if TYPE_CHECKING:
    from calclang.lexer import Token


class CalcError(Exception):
    """Exception type used to propagate calclang runtime errors."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"CalcError: {err.name}: {err.message}")
        self.err = err

    @classmethod
    def make(cls, name: str, message: str, token: Optional['Token'] = None) -> 'CalcError':
        if token is not None and token.line:
            message = f"{message} (line {token.line})"
        return cls(ErrorVal(name, message))


class ParseError(Exception):
    """Raised when the current token does not fit the grammar."""
    def __init__(self, token: 'Token', expected: Optional[str] = None):
        msg = f"Unexpected Token {token.type} {token.value!r} at {token.line}:{token.column}"
        if expected:
            msg += f", expected {expected}"
        super().__init__(msg)
        self.token = token
        self.expected = expected
