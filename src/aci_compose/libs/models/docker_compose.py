from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ServicePort(BaseModel):
    target: int
    published: int | None = None
    protocol: str = "tcp"
    host_ip: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _parse_short_syntax(cls, data: Any) -> Any:
        if isinstance(data, int):
            return {"target": data}
        if not isinstance(data, str):
            return data

        spec, _, protocol = data.partition("/")
        parts = spec.rsplit(":", 2)
        port: dict[str, Any] = {"target": int(parts[-1])}
        if len(parts) >= 2 and parts[-2]:
            port["published"] = int(parts[-2])
        if len(parts) == 3 and parts[0]:
            port["host_ip"] = parts[0]
        if protocol:
            port["protocol"] = protocol
        return port


class ResourceLimitsModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    memory: str | int | None = None
    cpus: str | float | None = None


class ResourcesModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    limits: ResourceLimitsModel | None = None


class DeployModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    resources: ResourcesModel = Field(default_factory=ResourcesModel)


class ComposeService(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    image: str
    command: str | list[str] | None = None
    ports: list[ServicePort] = Field(default_factory=list)
    environment: dict[str, str | None] = Field(default_factory=dict)
    deploy: DeployModel | None = None

    @field_validator("environment", mode="before")
    @classmethod
    def _parse_environment(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, list):
            environment: dict[str, str | None] = {}
            for item in value:
                key, sep, val = str(item).partition("=")
                environment[key] = val if sep else None
            return environment
        if isinstance(value, dict):
            return {k: None if v is None else str(v) for k, v in value.items()}
        return value

    @property
    def limits(self) -> ResourceLimitsModel | None:
        if self.deploy is None:
            return None
        return self.deploy.resources.limits


class ComposeProject(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    services: list[ComposeService] = Field(default_factory=list)

    @field_validator("services", mode="before")
    @classmethod
    def _services_from_mapping(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return [
                {**(service or {}), "name": name} for name, service in value.items()
            ]
        return value

    @field_validator("services")
    @classmethod
    def _unique_service_names(
        cls, services: list[ComposeService]
    ) -> list[ComposeService]:
        seen: set[str] = set()
        for service in services:
            if service.name in seen:
                raise ValueError(f"Duplicate service name: {service.name}")
            seen.add(service.name)
        return services

    def service_names(self) -> list[str]:
        return [service.name for service in self.services]
