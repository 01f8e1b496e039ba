"""
Closed registries of database, blockchain and tokens providers.
"""
from enum import Enum
from typing import Dict, List, Type

from ..exceptions import UnknownProviderError


class _Registry(str, Enum):
    """
    Base for provider registries. Members are matched against their exact,
    case-sensitive string value.
    """

    @classmethod
    def kind(cls) -> str:
        return REGISTRY_KINDS[cls]

    @classmethod
    def options(cls) -> List[str]:
        """Returns every valid token, in declaration order."""
        return [member.value for member in cls]

    @classmethod
    def from_string(cls, value: str):
        """
        Parses a provider token.

        :param value: The token supplied by the user.
        :return: The matching registry member.
        :raises UnknownProviderError: If the token is not in the registry.
        """
        for member in cls:
            if member.value == value:
                return member
        raise UnknownProviderError(cls.kind(), value, cls.options())


class DatabaseSelection(_Registry):
    """Database used by each member's FireFly core."""
    SQLITE3 = "sqlite3"
    POSTGRES = "postgres"

    @property
    def is_managed(self) -> bool:
        """True when the database runs as its own service in the stack."""
        return self is DatabaseSelection.POSTGRES


class BlockchainProvider(_Registry):
    """Blockchain node implementation shared by the network."""
    GETH = "geth"
    BESU = "besu"


class TokensProvider(_Registry):
    """Token connector attached to each member."""
    NONE = "none"
    ERC1155 = "erc1155"


REGISTRY_KINDS: Dict[Type[_Registry], str] = {
    DatabaseSelection: "database",
    BlockchainProvider: "blockchain provider",
    TokensProvider: "tokens provider",
}

# Providers the topology generator can currently build end to end. Narrower
# than BlockchainProvider, which also parses providers that are planned.
SUPPORTED_BLOCKCHAIN_PROVIDERS = (BlockchainProvider.GETH,)


def parse_provider(kind: str, value: str) -> _Registry:
    """
    Parses a token against the registry registered under ``kind``.

    :param kind: One of "database", "blockchain provider", "tokens provider".
    :param value: The token to parse.
    :return: The matching provider value.
    """
    for registry, registry_kind in REGISTRY_KINDS.items():
        if registry_kind == kind:
            return registry.from_string(value)
    raise KeyError(f"unknown provider registry: {kind}")
