import logging
import re
import shlex

from aci_compose.libs.errors import (
    InvalidContainerError,
    PortMappingNotSupportedError,
    ReservedServiceNameError,
    ResourceValueError,
)
from aci_compose.libs.models.container_group import (
    AciContext,
    Container,
    ContainerGroup,
    ContainerPort,
    EnvironmentVariable,
    IPAddress,
    Port,
    ResourceLimits,
    ResourceRequirements,
)
from aci_compose.libs.models.containers import ContainerView, PortMapping
from aci_compose.libs.models.docker_compose import ComposeProject, ComposeService

logger = logging.getLogger(__name__)

COMPOSE_DNS_SIDECAR_NAME = "aci--dns--sidecar"
DNS_SIDECAR_IMAGE = "busybox:1.31.1"

DEFAULT_MEMORY_GB = 1.0
DEFAULT_CPU = 1.0
# Limits are sent in GB with two decimals; smaller ones would round to zero.
MIN_MEMORY_GB = 0.01
SIDECAR_MEMORY_GB = 0.1
SIDECAR_CPU = 0.01

_MEMORY_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgt]?)b?\s*$", re.IGNORECASE)
_MEMORY_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3, "t": 1024**4}


def bytes_to_gb(value: int | float) -> float:
    return round(value / 1024 / 1024 / 1024, 2)


def parse_memory_bytes(service: str, value: str | int) -> int:
    if isinstance(value, int):
        if value < 0:
            raise ResourceValueError(service, "memory", value)
        return value

    match = _MEMORY_PATTERN.match(value)
    if match is None:
        raise ResourceValueError(service, "memory", value)

    amount, unit = match.groups()
    return int(float(amount) * _MEMORY_UNITS[unit.lower()])


def parse_cpus(service: str, value: str | float) -> float:
    try:
        cpus = float(value)
    except ValueError as e:
        raise ResourceValueError(service, "cpus", value) from e
    if cpus < 0:
        raise ResourceValueError(service, "cpus", value)
    return cpus


def _get_resources(service: ComposeService) -> ResourceRequirements:
    memory_gb = DEFAULT_MEMORY_GB
    cpu = DEFAULT_CPU

    limits = service.limits
    if limits is not None:
        if limits.memory is not None:
            memory_bytes = parse_memory_bytes(service.name, limits.memory)
            if memory_bytes != 0:
                memory_gb = max(bytes_to_gb(memory_bytes), MIN_MEMORY_GB)
        if limits.cpus is not None:
            cpu = parse_cpus(service.name, limits.cpus)

    return ResourceRequirements(
        limits=ResourceLimits(memory_in_gb=memory_gb, cpu=cpu),
        requests=ResourceLimits(memory_in_gb=memory_gb, cpu=cpu),
    )


def _get_command(service: ComposeService) -> list[str] | None:
    if service.command is None:
        return None
    if isinstance(service.command, str):
        return shlex.split(service.command)
    return list(service.command)


def _get_container(service: ComposeService) -> Container:
    return Container(
        name=service.name,
        image=service.image,
        command=_get_command(service),
        environment_variables=[
            EnvironmentVariable(name=key, value=value)
            for key, value in service.environment.items()
            if value is not None
        ],
        resources=_get_resources(service),
    )


def get_dns_sidecar(containers: list[Container]) -> Container:
    """Build the container that makes every service resolvable by name.

    Containers of a group share loopback, so pointing each service name at
    127.0.0.1 in /etc/hosts is enough. The restart policy applies to the whole
    group, so the sidecar sleeps instead of exiting once the file is written.
    """
    commands = [f"echo 127.0.0.1 {container.name} >> /etc/hosts" for container in containers]
    commands.append("sleep infinity")

    return Container(
        name=COMPOSE_DNS_SIDECAR_NAME,
        image=DNS_SIDECAR_IMAGE,
        command=["sh", "-c", ";".join(commands)],
        resources=ResourceRequirements(
            limits=ResourceLimits(memory_in_gb=SIDECAR_MEMORY_GB, cpu=SIDECAR_CPU),
            requests=ResourceLimits(memory_in_gb=SIDECAR_MEMORY_GB, cpu=SIDECAR_CPU),
        ),
    )


def to_container_group(context: AciContext, project: ComposeProject) -> ContainerGroup:
    for service in project.services:
        if service.name == COMPOSE_DNS_SIDECAR_NAME:
            raise ReservedServiceNameError(service.name)

    containers: list[Container] = []
    group_ports: list[Port] = []

    for service in project.services:
        container = _get_container(service)

        for port in service.ports:
            if port.published is not None and port.published != port.target:
                raise PortMappingNotSupportedError(
                    service.name, port.published, port.target
                )
            protocol = port.protocol.upper()
            container.ports.append(ContainerPort(port=port.target, protocol=protocol))
            group_ports.append(Port(port=port.target, protocol=protocol))

        containers.append(container)

    if len(containers) > 1:
        containers.append(get_dns_sidecar(containers))

    group = ContainerGroup(
        name=project.name.lower(),
        location=context.location,
        containers=containers,
        ip_address=IPAddress(type="Public", ports=group_ports) if group_ports else None,
    )
    logger.debug(
        "Converted project %r into container group %r with %d containers",
        project.name,
        group.name,
        len(group.containers),
    )
    return group


def container_group_to_container(
    container_id: str, group: ContainerGroup, container: Container
) -> ContainerView:
    if container.name is None:
        raise InvalidContainerError("name")
    if container.image is None:
        raise InvalidContainerError("image")

    memory_limit = 0.0
    if container.resources is not None and container.resources.limits is not None:
        memory_limit = container.resources.limits.memory_in_gb or 0.0

    status = "Unknown"
    if (
        container.instance_view is not None
        and container.instance_view.current_state is not None
        and container.instance_view.current_state.state is not None
    ):
        status = container.instance_view.current_state.state

    ports: list[PortMapping] = []
    if group.ip_address is not None and group.ip_address.ip is not None:
        ports = [
            PortMapping(
                host_port=port.port,
                container_port=port.port,
                protocol=(port.protocol or "tcp").lower(),
                host_ip=group.ip_address.ip,
            )
            for port in container.ports
        ]

    return ContainerView(
        id=container_id,
        status=status,
        image=container.image,
        command=" ".join(container.command or []),
        memory_limit=memory_limit,
        ports=ports,
    )


def container_group_to_containers(group: ContainerGroup) -> list[ContainerView]:
    return [
        container_group_to_container(f"{group.name}_{container.name}", group, container)
        for container in group.containers
        if container.name != COMPOSE_DNS_SIDECAR_NAME
    ]
