import json
import logging
import shutil
import subprocess  # noqa: S404
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from aci_compose.libs.functions.convert import COMPOSE_DNS_SIDECAR_NAME
from aci_compose.libs.models.container_group import AciContext, ContainerGroup

logger = logging.getLogger(__name__)

LogCallback = Callable[[str, str, str], None]


class LogFetcher(Protocol):
    def get_logs(self, name: str, callback: LogCallback) -> None:
        """Start delivering ``(service, container, message)`` events for a group.

        Returns once delivery is set up; raises if it cannot be.
        """
        ...

    def stop(self) -> None:
        """Stop delivering events and release what ``get_logs`` started."""
        ...


@dataclass
class AzCliLogFetcher:
    """Follows the logs of every container of a group through the ``az`` CLI."""

    context: AciContext
    az_path: str = "az"
    stop_timeout: float = 5.0
    _threads: list[threading.Thread] = field(default_factory=list, init=False)
    _processes: list[subprocess.Popen] = field(default_factory=list, init=False)
    _stopped: threading.Event = field(default_factory=threading.Event, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def _base_args(self) -> list[str]:
        return [self.az_path, "container"]

    def _scope_args(self, name: str) -> list[str]:
        args = ["--resource-group", self.context.resource_group, "--name", name]
        if self.context.subscription_id:
            args += ["--subscription", self.context.subscription_id]
        return args

    def show(self, name: str) -> ContainerGroup:
        if shutil.which(self.az_path) is None:
            raise FileNotFoundError(f"{self.az_path} CLI not found in PATH")
        result = subprocess.run(  # noqa: S603
            [*self._base_args(), "show", *self._scope_args(name), "--output", "json"],
            check=True,
            capture_output=True,
            text=True,
        )
        return ContainerGroup.model_validate(json.loads(result.stdout))

    def get_logs(self, name: str, callback: LogCallback) -> None:
        group = self.show(name)
        for container in group.containers:
            if container.name is None or container.name == COMPOSE_DNS_SIDECAR_NAME:
                continue
            thread = threading.Thread(
                target=self._follow,
                args=(name, container.name, callback),
                name=f"logs-{container.name}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def stop(self) -> None:
        """Terminate every ``az container logs`` process and wait for its thread."""
        with self._lock:
            self._stopped.set()
            processes = list(self._processes)
        for process in processes:
            process.terminate()
        for thread in self._threads:
            thread.join(timeout=self.stop_timeout)

    def _follow(self, name: str, container_name: str, callback: LogCallback) -> None:
        args = [
            *self._base_args(),
            "logs",
            *self._scope_args(name),
            "--container-name",
            container_name,
            "--follow",
        ]
        with subprocess.Popen(  # noqa: S603
            args, stdout=subprocess.PIPE, text=True
        ) as process:
            with self._lock:
                if self._stopped.is_set():
                    process.terminate()
                self._processes.append(process)
            assert process.stdout is not None
            for line in process.stdout:
                if self._stopped.is_set():
                    break
                callback(container_name, f"{name}_{container_name}", line.rstrip("\n"))
            if self._stopped.is_set():
                process.terminate()
        with self._lock:
            self._processes.remove(process)
        logger.debug(
            "Log stream of %s exited with code %s", container_name, process.returncode
        )
