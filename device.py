import sys
from typing import Optional
from typing import TextIO

from misc import Device


class ConsoleInputDevice(Device):
    """Line input, stdin unless another stream is given."""

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__()
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdin

    def read(self) -> str:
        # '' at end of input
        return self.stream.readline()

    def write(self, text: str) -> None:
        pass


class ConsoleOutputDevice(Device):

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__()
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def read(self) -> str:
        pass

    def write(self, text: str) -> None:
        self.stream.write(text)

    def flush(self) -> None:
        self.stream.flush()
