import logging
import sys
import textwrap
from typing import Protocol, TextIO

from display.config import WAITING_MESSAGE
from display.identity import DisplayedIdentity

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    def show(self, identity: DisplayedIdentity) -> None: ...

    def clear(self) -> None: ...


class ConsoleRenderer:
    """Prints an identity card to a terminal. Used when no window is available."""

    def __init__(self, stream: TextIO | None = None, width: int = 60):
        self.stream = stream or sys.stdout
        self.width = width

    def _write(self, lines: list[str]) -> None:
        inner = self.width - 4
        border = "+" + "-" * (self.width - 2) + "+"
        self.stream.write(border + "\n")
        for line in lines:
            for row in textwrap.wrap(line, inner) or [""]:
                self.stream.write("| " + row.ljust(inner) + " |\n")
        self.stream.write(border + "\n")
        self.stream.flush()

    def show(self, identity: DisplayedIdentity) -> None:
        lines = [identity.name, identity.position, identity.company]
        if identity.image_url:
            lines.append(f"photo: {identity.image_url}")
        self._write(lines)

    def clear(self) -> None:
        self._write([WAITING_MESSAGE])
