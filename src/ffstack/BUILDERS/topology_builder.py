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
Builds the service topology of a stack from its network configuration.

Every member gets an IPFS node and a data exchange, plus a FireFly core
when the member is not external and a PostgreSQL database when the stack
uses postgres. Services are assembled as mutable drafts per member, amended,
and only then frozen into ServiceNode values.
"""
import secrets
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import structlog

from ..exceptions import TopologyError
from ..MODELS.network_config import Member, NetworkConfig, create_members
from ..MODELS.orchestration_config import Topology
from ..MODELS.service_definition import (
    STANDARD_LOGGING,
    DependencyCondition,
    HealthCheck,
    LoggingConfig,
    PortMapping,
    ServiceNode,
    VolumeMount,
)
from ..RUNNERS.dependency_resolver import DependencyResolver

logger = structlog.get_logger(__name__)

FIREFLY_CORE_IMAGE = "ghcr.io/hyperledger-labs/firefly:latest"
POSTGRES_IMAGE = "postgres"
IPFS_IMAGE = "ipfs/go-ipfs"
DATAEXCHANGE_IMAGE = "ghcr.io/hyperledger-labs/firefly-dataexchange-https:latest"

POSTGRES_PASSWORD = "f1refly"

POSTGRES_HEALTH_CHECK = HealthCheck(
    test=("CMD-SHELL", "pg_isready -U postgres"),
    interval=5.0,
    timeout=3.0,
    retries=12,
)


def core_service_name(member_id: str) -> str:
    return f"firefly_core_{member_id}"


def postgres_service_name(member_id: str) -> str:
    return f"postgres_{member_id}"


def ipfs_service_name(member_id: str) -> str:
    return f"ipfs_{member_id}"


def dataexchange_service_name(member_id: str) -> str:
    return f"dataexchange_{member_id}"


def generate_swarm_key() -> str:
    """
    Generates a pre-shared key for the stack's private IPFS network.
    """
    return f"/key/swarm/psk/1.0.0/\n/base16/\n{secrets.token_hex(32)}"


@dataclass
class ServiceDraft:
    """
    A service under construction. Only the builder holds drafts; they are
    frozen into ServiceNode values before the topology is returned.
    """
    name: str
    image: str
    ports: List[PortMapping] = field(default_factory=list)
    volumes: List[VolumeMount] = field(default_factory=list)
    environment: Dict[str, str] = field(default_factory=dict)
    depends_on: Dict[str, DependencyCondition] = field(default_factory=dict)
    health_check: Optional[HealthCheck] = None
    logging: Optional[LoggingConfig] = STANDARD_LOGGING

    def publish(self, host: int, container: int) -> "ServiceDraft":
        self.ports.append(PortMapping(host=host, container=container))
        return self

    def mount(self, volume: str, target: str) -> "ServiceDraft":
        self.volumes.append(VolumeMount(source=volume, target=target))
        return self

    def depend_on(self, service: str, condition: DependencyCondition) -> "ServiceDraft":
        self.depends_on[service] = condition
        return self

    def freeze(self) -> ServiceNode:
        return ServiceNode(
            name=self.name,
            image=self.image,
            ports=tuple(self.ports),
            volumes=tuple(self.volumes),
            env=tuple(self.environment.items()),
            dependencies=tuple(self.depends_on.items()),
            health_check=self.health_check,
            logging=self.logging,
        )


class TopologyBuilder:
    """
    Expands a network configuration into its full service topology.
    """
    def __init__(
        self,
        config: NetworkConfig,
        swarm_key: str,
        members: Optional[Sequence[Member]] = None,
    ):
        """
        :param config: The validated network configuration.
        :param swarm_key: IPFS private network key shared by all members.
        :param members: Members to generate services for. Derived from
            ``config`` when omitted; ids are assumed unique.
        """
        self.config = config
        self.swarm_key = swarm_key
        self.members = list(members) if members is not None else create_members(config)
        self.resolver = DependencyResolver()

    def build(self) -> Topology:
        """
        Builds and checks the topology.

        :return: The frozen topology.
        :raises TopologyError: If the result breaks volume closure, port
            uniqueness or acyclicity.
        """
        services: Dict[str, ServiceNode] = {}
        for member in self.members:
            for draft in self._member_drafts(member):
                if draft.name in services:
                    raise TopologyError(f"service {draft.name} is generated twice - member ids must be unique")
                services[draft.name] = draft.freeze()

        volumes: List[str] = []
        for svc in services.values():
            for name in svc.volume_names:
                if name not in volumes:
                    volumes.append(name)

        topology = Topology.from_services(services, volumes)
        self._check(topology)
        logger.debug(
            "topology_generated",
            stack=self.config.stack_name,
            services=len(topology.services),
            volumes=len(topology.volumes),
        )
        return topology

    def _member_drafts(self, member: Member) -> List[ServiceDraft]:
        """
        Drafts every service of one member, in emission order: core,
        database, IPFS, data exchange.
        """
        drafts: List[ServiceDraft] = []
        core: Optional[ServiceDraft] = None

        if not member.external:
            core = self._core_draft(member)
            drafts.append(core)

        if self.config.database.is_managed:
            drafts.append(self._postgres_draft(member))
            if core is not None:
                core.depend_on(postgres_service_name(member.id), DependencyCondition.HEALTHY)

        drafts.append(self._ipfs_draft(member))
        drafts.append(self._dataexchange_draft(member))
        return drafts

    def _core_draft(self, member: Member) -> ServiceDraft:
        name = core_service_name(member.id)
        draft = ServiceDraft(name=name, image=FIREFLY_CORE_IMAGE)
        draft.publish(member.exposed_firefly_port, member.exposed_firefly_port)
        draft.publish(member.exposed_admin_port, member.exposed_admin_port)
        draft.mount(name, "/etc/firefly")
        draft.depend_on(dataexchange_service_name(member.id), DependencyCondition.STARTED)
        return draft

    def _postgres_draft(self, member: Member) -> ServiceDraft:
        name = postgres_service_name(member.id)
        draft = ServiceDraft(
            name=name,
            image=POSTGRES_IMAGE,
            environment={
                "POSTGRES_PASSWORD": POSTGRES_PASSWORD,
                "PGDATA": "/var/lib/postgresql/data/pgdata",
            },
            health_check=POSTGRES_HEALTH_CHECK,
        )
        draft.publish(member.exposed_postgres_port, 5432)
        draft.mount(name, "/var/lib/postgresql/data")
        return draft

    def _ipfs_draft(self, member: Member) -> ServiceDraft:
        draft = ServiceDraft(
            name=ipfs_service_name(member.id),
            image=IPFS_IMAGE,
            environment={
                "IPFS_SWARM_KEY": self.swarm_key,
                "LIBP2P_FORCE_PNET": "1",
            },
        )
        draft.publish(member.exposed_ipfs_api_port, 5001)
        draft.publish(member.exposed_ipfs_gw_port, 8080)
        draft.mount(f"ipfs_staging_{member.id}", "/export")
        draft.mount(f"ipfs_data_{member.id}", "/data/ipfs")
        return draft

    def _dataexchange_draft(self, member: Member) -> ServiceDraft:
        name = dataexchange_service_name(member.id)
        draft = ServiceDraft(name=name, image=DATAEXCHANGE_IMAGE)
        draft.publish(member.exposed_dataexchange_port, 3000)
        draft.mount(name, "/data")
        return draft

    def _check(self, topology: Topology):
        declared = set(topology.volumes)
        referenced = topology.referenced_volumes()
        if declared != referenced:
            raise TopologyError(
                f"volume set mismatch: undeclared {sorted(referenced - declared)}, "
                f"unused {sorted(declared - referenced)}"
            )

        duplicates = [port for port, n in Counter(topology.host_ports()).items() if n > 1]
        if duplicates:
            raise TopologyError(f"host ports published more than once: {sorted(duplicates)}")

        self.resolver.resolve_order(topology)


def generate(
    config: NetworkConfig,
    swarm_key: Optional[str] = None,
    members: Optional[Sequence[Member]] = None,
) -> Topology:
    """
    Generates the topology for ``config``.

    Service names, ports, volumes and dependency edges depend only on
    ``config`` and ``members``. A fresh swarm key is generated when none is
    given, so pass one to get identical IPFS environments across calls.
    """
    if swarm_key is None:
        swarm_key = generate_swarm_key()
    return TopologyBuilder(config, swarm_key, members).build()
