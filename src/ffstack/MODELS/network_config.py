"""
Models for the user-facing network configuration and the members derived from it.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .providers import BlockchainProvider, DatabaseSelection, TokensProvider

DEFAULT_FIREFLY_BASE_PORT = 5000
DEFAULT_SERVICES_BASE_PORT = 5100

# Each member owns a block of this many ports starting at services_base_port.
SERVICES_PORT_STRIDE = 100


class InitOptions(BaseModel):
    """
    Options accepted by ``init`` alongside the stack name and member count.
    Provider selections are raw strings; they are parsed during validation.
    """
    firefly_base_port: int = DEFAULT_FIREFLY_BASE_PORT
    services_base_port: int = DEFAULT_SERVICES_BASE_PORT
    database: str = DatabaseSelection.SQLITE3.value
    blockchain_provider: str = BlockchainProvider.GETH.value
    tokens_provider: str = TokensProvider.ERC1155.value
    external_processes: int = 0


class NetworkConfig(BaseModel):
    """
    Validated configuration of a stack. Immutable once created.
    """
    model_config = ConfigDict(frozen=True)

    stack_name: str = Field(min_length=1)
    member_count: int = Field(gt=0)
    external_processes: int = Field(default=0, ge=0)
    database: DatabaseSelection = DatabaseSelection.SQLITE3
    blockchain_provider: BlockchainProvider = BlockchainProvider.GETH
    tokens_provider: TokensProvider = TokensProvider.ERC1155
    firefly_base_port: int = DEFAULT_FIREFLY_BASE_PORT
    services_base_port: int = DEFAULT_SERVICES_BASE_PORT

    @model_validator(mode="after")
    def _check_external_processes(self) -> "NetworkConfig":
        if self.external_processes >= self.member_count:
            raise ValueError("at least one member must run a managed FireFly core")
        return self


class Member(BaseModel):
    """
    One participant of the network and the host ports published for its services.

    External members run their FireFly core outside the stack, so no core
    service is generated for them.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    index: int
    exposed_firefly_port: int
    exposed_admin_port: int
    exposed_postgres_port: int
    exposed_ui_port: int
    exposed_ipfs_api_port: int
    exposed_ipfs_gw_port: int
    exposed_dataexchange_port: int
    exposed_tokens_port: int
    external: bool = False

    @classmethod
    def derive(
        cls,
        index: int,
        firefly_base_port: int,
        services_base_port: int,
        external: bool = False,
        member_id: Optional[str] = None,
    ) -> "Member":
        """
        Derives member ``index``. The FireFly API port is
        ``firefly_base_port + index``; every other port comes from the member's
        own block of ``services_base_port + 100 * index``.
        """
        service_base = services_base_port + index * SERVICES_PORT_STRIDE
        return cls(
            id=member_id if member_id is not None else str(index),
            index=index,
            exposed_firefly_port=firefly_base_port + index,
            exposed_admin_port=service_base + 1,
            exposed_postgres_port=service_base + 2,
            exposed_ui_port=service_base + 3,
            exposed_ipfs_api_port=service_base + 4,
            exposed_ipfs_gw_port=service_base + 5,
            exposed_dataexchange_port=service_base + 6,
            exposed_tokens_port=service_base + 7,
            external=external,
        )


def create_members(config: NetworkConfig) -> List[Member]:
    """
    Derives every member of ``config``. The first ``external_processes``
    members are external.
    """
    return [
        Member.derive(
            index,
            config.firefly_base_port,
            config.services_base_port,
            external=index < config.external_processes,
        )
        for index in range(config.member_count)
    ]
