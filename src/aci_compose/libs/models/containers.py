from pydantic import BaseModel, Field


class PortMapping(BaseModel):
    host_port: int
    container_port: int
    protocol: str = "tcp"
    host_ip: str = ""


class ContainerView(BaseModel):
    id: str
    status: str
    image: str
    command: str = ""
    memory_limit: float = 0
    ports: list[PortMapping] = Field(default_factory=list)
