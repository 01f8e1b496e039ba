"""
Dependency resolution for generated services to determine startup order.
"""
from typing import Dict, List, Set

from ..exceptions import CircularDependencyError
from ..MODELS.orchestration_config import Topology


class DependencyResolver:
    """
    Resolves the startup order of services based on their dependencies.
    """
    def resolve_order(self, topology: Topology) -> List[str]:
        """
        Determines the order services start in using a topological sort.
        Ties are broken by the order services appear in the topology.

        :param topology: The generated topology.
        :return: Service names in the order they should be started.
        :raises CircularDependencyError: If a circular dependency is detected.
        """
        services = topology.services
        dependencies: Dict[str, List[str]] = {
            name: list(svc.depends_on) for name, svc in services.items()
        }

        ordered: List[str] = []
        visited: Set[str] = set()
        processing: Set[str] = set()

        def visit(name: str):
            if name in processing:
                raise CircularDependencyError(name)
            if name not in visited:
                processing.add(name)
                for dep in dependencies.get(name, []):
                    # External members' cores are not part of the topology
                    if dep in services:
                        visit(dep)
                processing.remove(name)
                visited.add(name)
                ordered.append(name)

        for name in services:
            visit(name)

        return ordered

    def missing_dependencies(self, topology: Topology) -> Dict[str, List[str]]:
        """
        Lists, per service, the dependencies that are not defined in the topology.
        """
        missing = {}
        for name, svc in topology.services.items():
            absent = [dep for dep in svc.depends_on if dep not in topology.services]
            if absent:
                missing[name] = absent
        return missing
