class AciComposeError(Exception):
    """Base class for every error raised by aci-compose."""


class ConversionError(AciComposeError, ValueError):
    """A compose project or container group cannot be converted."""


class ResourceValueError(ConversionError):
    def __init__(self, service: str, field: str, value: object):
        super().__init__(f"Invalid {field} value {value!r} for service {service}")
        self.service = service
        self.field = field
        self.value = value


class PortMappingNotSupportedError(ConversionError):
    def __init__(self, service: str, published: int, target: int):
        super().__init__(
            f"Port mapping is not supported with ACI, cannot map port {published} "
            f"to {target} for container {service}"
        )
        self.service = service
        self.published = published
        self.target = target


class ReservedServiceNameError(ConversionError):
    def __init__(self, name: str):
        super().__init__(f"Service name {name!r} is reserved for the DNS sidecar")
        self.name = name


class InvalidContainerError(ConversionError):
    def __init__(self, field: str):
        super().__init__(f"Container definition has no {field}")
        self.field = field


class ProjectLoadError(AciComposeError):
    """The compose project could not be loaded."""
