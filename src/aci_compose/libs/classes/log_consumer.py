import logging
import threading
from collections.abc import Iterator
from typing import TextIO

from aci_compose.libs.classes.colors import ColorFunc, default_color_cycle

logger = logging.getLogger(__name__)

WIDTH_PADDING = 3


class LogConsumer:
    """Writes log events from many services to one sink, one column per prefix.

    The first event of a service assigns it the next color and widens the
    prefix column to fit the longest known service name. Lines that were
    already written keep the width they had.
    """

    def __init__(self, sink: TextIO, colors: Iterator[ColorFunc] | None = None):
        self.sink = sink
        self.color_cycle = colors if colors is not None else default_color_cycle()
        self.colors: dict[str, ColorFunc] = {}
        self.width = 0
        self._lock = threading.Lock()

    def log(self, service: str, container: str, message: str) -> None:
        with self._lock:
            color = self.colors.get(service)
            if color is None:
                color = next(self.color_cycle)
                self.colors[service] = color
                self._compute_width()

            prefix = color(f"{service:<{self.width}} |")
            for line in message.split("\n"):
                self._write(f"{prefix} {line}\n")

    def _compute_width(self) -> None:
        self.width = max(len(name) for name in self.colors) + WIDTH_PADDING

    def _write(self, text: str) -> None:
        try:
            self.sink.write(text)
        except (OSError, ValueError) as e:
            logger.debug("Dropped log line: %s", e)
