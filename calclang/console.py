import sys
from collections import deque
from typing import Optional, TextIO

from calclang.errors import CalcError


class Console:
    """Standard input and output as seen by ``print`` and ``scanf``.

    Input is consumed one whitespace-delimited word at a time; a line is
    only read from the stream once the words of the previous line are
    used up. Streams default to ``sys.stdin``/``sys.stdout``/``sys.stderr``
    looked up at call time, so redirected streams are honoured.
    """
    def __init__(self, stdin: Optional[TextIO] = None):
        self._stdin = stdin
        self.pending = deque()

    @property
    def stdin(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    def write_line(self, text: str) -> None:
        print(text)

    def diagnostic(self, message: str) -> None:
        print(message, file=sys.stderr)

    def read_word(self) -> str:
        while not self.pending:
            line = self.stdin.readline()
            if line == '':
                raise CalcError.make('InputError', 'scanf: unexpected end of input')
            self.pending.extend(line.split())
        return self.pending.popleft()

    def read_integer(self) -> int:
        word = self.read_word()
        try:
            return int(word)
        except ValueError:
            raise CalcError.make('InputError', f'scanf: cannot parse Integer from {word!r}')

    def read_real(self) -> float:
        word = self.read_word()
        try:
            return float(word)
        except ValueError:
            raise CalcError.make('InputError', f'scanf: cannot parse Real from {word!r}')
