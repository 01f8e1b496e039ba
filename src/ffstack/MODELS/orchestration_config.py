"""
Models for the generated topology of a stack.
"""
from types import MappingProxyType
from typing import List, Mapping, Set, Tuple

from pydantic import BaseModel, ConfigDict

from .service_definition import ServiceNode


class Topology(BaseModel):
    """
    Complete set of services and volumes for a stack.
    Equivalent to the contents of a generated docker-compose.yml file.
    """
    model_config = ConfigDict(frozen=True)

    nodes: Tuple[ServiceNode, ...] = ()
    volumes: Tuple[str, ...] = ()

    @classmethod
    def from_services(cls, services: Mapping[str, ServiceNode], volumes=()) -> "Topology":
        return cls(nodes=tuple(services.values()), volumes=tuple(volumes))

    @property
    def services(self) -> Mapping[str, ServiceNode]:
        """Read-only view of the services by name, in generation order."""
        return MappingProxyType({node.name: node for node in self.nodes})

    def host_ports(self) -> List[int]:
        """Every published host port, in service order. Duplicates are kept."""
        return [port for svc in self.nodes for port in svc.host_ports]

    def referenced_volumes(self) -> Set[str]:
        return {name for svc in self.nodes for name in svc.volume_names}
