"""Container group descriptors in the shape used by the ACI management API.

Models dump with camelCase aliases, so ``model_dump(by_alias=True)`` matches
the JSON printed by ``az container show``, and they validate from either the
aliases or the field names.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AciModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AciContext(AciModel):
    subscription_id: str = ""
    resource_group: str = ""
    location: str = ""


class Port(AciModel):
    port: int
    protocol: str = "TCP"


class IPAddress(AciModel):
    type: str = "Public"
    ip: str | None = None
    ports: list[Port] = Field(default_factory=list)


class ContainerPort(AciModel):
    port: int
    protocol: str | None = None


class EnvironmentVariable(AciModel):
    name: str
    value: str | None = None


class ResourceLimits(AciModel):
    memory_in_gb: float | None = None
    cpu: float | None = None


class ResourceRequirements(AciModel):
    limits: ResourceLimits | None = None
    requests: ResourceLimits | None = None


class ContainerState(AciModel):
    state: str | None = None
    detail_status: str | None = None


class ContainerInstanceView(AciModel):
    restart_count: int | None = None
    current_state: ContainerState | None = None


class Container(AciModel):
    name: str | None = None
    image: str | None = None
    command: list[str] | None = None
    ports: list[ContainerPort] = Field(default_factory=list)
    environment_variables: list[EnvironmentVariable] = Field(default_factory=list)
    resources: ResourceRequirements | None = None
    instance_view: ContainerInstanceView | None = None


class ContainerGroup(AciModel):
    name: str
    location: str = ""
    os_type: str = "Linux"
    containers: list[Container] = Field(default_factory=list)
    ip_address: IPAddress | None = None
