import logging
import queue
import threading
from collections.abc import Callable, Iterator
from typing import NamedTuple, TextIO

from aci_compose.libs.classes.colors import ColorFunc
from aci_compose.libs.classes.log_consumer import LogConsumer
from aci_compose.libs.classes.log_fetcher import LogFetcher
from aci_compose.libs.models.docker_compose import ComposeProject

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1


class LogEvent(NamedTuple):
    service: str
    container: str
    message: str


def _drain(channel: "queue.Queue[LogEvent]", consumer: LogConsumer) -> None:
    while True:
        try:
            event = channel.get_nowait()
        except queue.Empty:
            return
        consumer.log(*event)


def stream_logs(
    fetcher: LogFetcher,
    sink: TextIO,
    cancel: threading.Event,
    *,
    name: str | None = None,
    project_loader: Callable[[], ComposeProject] | None = None,
    colors: Iterator[ColorFunc] | None = None,
) -> None:
    """Print the logs of a container group until ``cancel`` is set.

    The group name is ``name`` when given, otherwise the name of the project
    returned by ``project_loader``. Events pushed by the fetcher from any
    thread are queued and written by the calling thread only. The fetcher is
    stopped before returning.
    """
    if not name:
        if project_loader is None:
            raise ValueError("Either a name or a project loader is required")
        name = project_loader().name

    consumer = LogConsumer(sink, colors)
    channel: queue.Queue[LogEvent] = queue.Queue()

    def handler(service: str, container: str, message: str) -> None:
        channel.put(LogEvent(service, container, message))

    fetcher.get_logs(name, handler)
    logger.debug("Streaming logs of %s", name)

    try:
        while not cancel.is_set():
            try:
                event = channel.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            consumer.log(*event)
    finally:
        fetcher.stop()

    _drain(channel, consumer)
    logger.debug("Stopped streaming logs of %s", name)
