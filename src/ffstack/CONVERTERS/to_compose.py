# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Converter for rendering a generated topology as a Docker Compose file.
"""
import os
from typing import Any, Dict

import yaml

from ..MODELS.orchestration_config import Topology
from ..MODELS.service_definition import HealthCheck, ServiceNode

COMPOSE_VERSION = "2.1"
COMPOSE_FILENAME = "docker-compose.yml"


def _duration(seconds: float) -> str:
    if float(seconds).is_integer():
        return f"{int(seconds)}s"
    return f"{int(seconds * 1000)}ms"


class ComposeConverter:
    """
    Converts a topology into a docker-compose document.
    """

    def __init__(self, topology: Topology):
        """
        :param topology: The topology to render.
        """
        self.topology = topology

    def to_dict(self) -> Dict[str, Any]:
        """
        Builds the compose document. Services, ports, volumes and dependencies
        keep the order they have in the topology.
        """
        return {
            "version": COMPOSE_VERSION,
            "services": {name: self._service(svc) for name, svc in self.topology.services.items()},
            "volumes": {name: {} for name in self.topology.volumes},
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)

    def convert(self, output_dir: str) -> str:
        """
        Writes docker-compose.yml into ``output_dir``.

        :param output_dir: Directory the compose file is created in.
        :return: The path of the written file.
        """
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, COMPOSE_FILENAME)
        with open(path, "w") as f:
            f.write(self.to_yaml())
        return path

    def _service(self, svc: ServiceNode) -> Dict[str, Any]:
        out: Dict[str, Any] = {"image": svc.image}
        if svc.ports:
            out["ports"] = [f"{p.host}:{p.container}" for p in svc.ports]
        if svc.environment:
            out["environment"] = dict(svc.environment)
        if svc.volumes:
            out["volumes"] = [
                f"{m.source}:{m.target}:ro" if m.read_only else f"{m.source}:{m.target}"
                for m in svc.volumes
            ]
        if svc.depends_on:
            out["depends_on"] = {
                name: {"condition": condition.value} for name, condition in svc.depends_on.items()
            }
        if svc.health_check:
            out["healthcheck"] = self._health_check(svc.health_check)
        if svc.logging:
            out["logging"] = {"driver": svc.logging.driver, "options": svc.logging.options_dict()}
        return out

    @staticmethod
    def _health_check(hc: HealthCheck) -> Dict[str, Any]:
        return {
            "test": list(hc.test),
            "interval": _duration(hc.interval),
            "timeout": _duration(hc.timeout),
            "retries": hc.retries,
        }
