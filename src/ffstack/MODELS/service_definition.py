"""
Models for generated services, including ports, mounts, health checks and logging.
"""
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class DependencyCondition(str, Enum):
    """
    How far a dependency must have progressed before the dependent service starts.
    """
    STARTED = "service_started"
    HEALTHY = "service_healthy"


class PortMapping(BaseModel):
    """
    A published port: ``host`` on the machine running the stack, ``container``
    inside the service.
    """
    model_config = ConfigDict(frozen=True)

    host: int
    container: int


class VolumeMount(BaseModel):
    """
    Defines a mapping between a named volume and a path inside the service.
    """
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    read_only: bool = False


class HealthCheck(BaseModel):
    """
    Defines a command to run to check the health of a service.
    Durations are in seconds.
    """
    model_config = ConfigDict(frozen=True)

    test: Tuple[str, ...]
    interval: float = 30.0
    timeout: float = 30.0
    retries: int = 3


class LoggingConfig(BaseModel):
    """
    Log driver and its options. Options are kept as ordered pairs so a single
    instance can be shared by every service without being altered through one of them.
    """
    model_config = ConfigDict(frozen=True)

    driver: str
    options: Tuple[Tuple[str, str], ...] = ()

    def options_dict(self) -> Dict[str, str]:
        return dict(self.options)


STANDARD_LOGGING = LoggingConfig(
    driver="json-file",
    options=(("max-size", "10m"), ("max-file", "1")),
)


class ServiceNode(BaseModel):
    """
    The full definition of a single generated service.

    Instances are frozen; the topology builder assembles every field before
    constructing one.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    image: str

    ports: Tuple[PortMapping, ...] = ()
    volumes: Tuple[VolumeMount, ...] = ()
    env: Tuple[Tuple[str, str], ...] = ()

    # Insertion ordered: renderers preserve the order edges were added in.
    dependencies: Tuple[Tuple[str, DependencyCondition], ...] = ()
    health_check: Optional[HealthCheck] = None
    logging: Optional[LoggingConfig] = STANDARD_LOGGING

    @property
    def environment(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self.env))

    @property
    def depends_on(self) -> Mapping[str, DependencyCondition]:
        """Dependency name to condition, in the order the edges were added."""
        return MappingProxyType(dict(self.dependencies))

    @property
    def volume_names(self) -> Tuple[str, ...]:
        return tuple(mount.source for mount in self.volumes)

    @property
    def host_ports(self) -> Tuple[int, ...]:
        return tuple(port.host for port in self.ports)
