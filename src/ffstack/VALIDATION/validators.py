"""
Validation of proposed stack configurations.

Each validator raises a specific InputError subclass on failure. validate_init
runs them in a fixed order so that the cheapest checks fail first and the
reported error is deterministic.
"""
import os
from typing import Callable, Dict, List, Tuple, Union

from ..exceptions import (
    EmptyNameError,
    InvalidExternalCountError,
    InvalidNameError,
    NameConflictError,
    NonPositiveCountError,
    NotANumberError,
    PortConflictError,
    TooManyExternalError,
    UnsupportedProviderError,
)
from ..MODELS.network_config import (
    InitOptions,
    Member,
    NetworkConfig,
)
from ..MODELS.providers import (
    SUPPORTED_BLOCKCHAIN_PROVIDERS,
    BlockchainProvider,
    DatabaseSelection,
    TokensProvider,
)

MIN_PORT = 1
MAX_PORT = 65535


def is_valid_stack_name(stack_name: str) -> bool:
    """
    Stack names become directory names, so they cannot be path components
    with special meaning or contain separators.
    """
    if not stack_name or stack_name in (".", ".."):
        return False
    return "/" not in stack_name and os.sep not in stack_name and "\0" not in stack_name


def validate_name(stack_name: str, exists: Callable[[str], bool]) -> str:
    """
    Checks that a stack name is usable.

    :param stack_name: The proposed name.
    :param exists: Lookup reporting whether a stack is already persisted.
    :return: The name, unchanged.
    """
    if stack_name is None or not stack_name.strip():
        raise EmptyNameError()
    if not is_valid_stack_name(stack_name):
        raise InvalidNameError(stack_name)
    if exists(stack_name):
        raise NameConflictError(stack_name)
    return stack_name


def validate_external_count(external_processes: int) -> int:
    if external_processes < 0:
        raise InvalidExternalCountError(external_processes)
    return external_processes


def parse_int(value: Union[str, int]) -> int:
    """
    Parses a base 10 integer: an optional sign followed by ASCII digits, with
    no surrounding whitespace. Ints pass through; anything else is rejected.
    """
    if isinstance(value, bool):
        raise NotANumberError(value)
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise NotANumberError(value)
    digits = value[1:] if value[:1] in ("+", "-") else value
    if not digits or not (digits.isascii() and digits.isdigit()):
        raise NotANumberError(value)
    return int(value)


def validate_count(value: Union[str, int], external_processes: int = 0) -> int:
    """
    Parses and checks the member count.

    :param value: The member count, as typed by the user or already an int.
    :param external_processes: How many members run their core outside the stack.
    :return: The member count as an int.
    """
    count = parse_int(value)
    if count <= 0:
        raise NonPositiveCountError(count)
    if external_processes >= count:
        raise TooManyExternalError(external_processes, count)
    return count


def validate_database_provider(value: str) -> DatabaseSelection:
    return DatabaseSelection.from_string(value)


def validate_blockchain_provider(value: str) -> BlockchainProvider:
    """
    Parses a blockchain provider and checks that stacks can currently be built for it.
    """
    provider = BlockchainProvider.from_string(value)
    validate_blockchain_supported(provider)
    return provider


def validate_blockchain_supported(provider: BlockchainProvider) -> BlockchainProvider:
    if provider not in SUPPORTED_BLOCKCHAIN_PROVIDERS:
        raise UnsupportedProviderError(
            "blockchain",
            provider.value,
            [p.value for p in SUPPORTED_BLOCKCHAIN_PROVIDERS],
        )
    return provider


def validate_tokens_provider(value: str) -> TokensProvider:
    return TokensProvider.from_string(value)


def _published_ports(member: Member, database: DatabaseSelection) -> List[Tuple[str, int]]:
    """
    The host ports the topology publishes for ``member``, labelled by service.
    """
    ports: List[Tuple[str, int]] = []
    if not member.external:
        ports.append(("FireFly API", member.exposed_firefly_port))
        ports.append(("FireFly admin", member.exposed_admin_port))
    if database.is_managed:
        ports.append(("postgres", member.exposed_postgres_port))
    ports.append(("IPFS API", member.exposed_ipfs_api_port))
    ports.append(("IPFS gateway", member.exposed_ipfs_gw_port))
    ports.append(("data exchange", member.exposed_dataexchange_port))
    return ports


def validate_ports(
    firefly_base_port: int,
    services_base_port: int,
    member_count: int,
    database: DatabaseSelection = DatabaseSelection.SQLITE3,
    external_processes: int = 0,
) -> None:
    """
    Checks that every host port the topology will publish for
    ``member_count`` members is in range and that no two of them collide.
    """
    owners: Dict[int, Tuple[str, str]] = {}
    for index in range(member_count):
        member = Member.derive(
            index, firefly_base_port, services_base_port, external=index < external_processes
        )
        for label, port in _published_ports(member, database):
            if not MIN_PORT <= port <= MAX_PORT:
                raise PortConflictError(
                    f"{label} port {port} of member {member.id} is outside the range {MIN_PORT}-{MAX_PORT}",
                    [port],
                )
            if port in owners:
                other_label, other_id = owners[port]
                raise PortConflictError(
                    f"{label} port {port} of member {member.id} collides with the {other_label} port "
                    f"of member {other_id} - choose base ports further apart",
                    [port],
                )
            owners[port] = (label, member.id)


def validate_init(
    stack_name: str,
    member_count: Union[str, int],
    options: InitOptions,
    exists: Callable[[str], bool],
) -> NetworkConfig:
    """
    Runs every validation for a new stack and returns its configuration.

    Order: name, external count, member count, database, blockchain,
    tokens, blockchain support, ports.
    """
    name = validate_name(stack_name, exists)
    external = validate_external_count(options.external_processes)
    count = validate_count(member_count, external)
    database = validate_database_provider(options.database)
    blockchain = BlockchainProvider.from_string(options.blockchain_provider)
    tokens = validate_tokens_provider(options.tokens_provider)
    validate_blockchain_supported(blockchain)
    validate_ports(
        options.firefly_base_port, options.services_base_port, count, database, external
    )

    return NetworkConfig(
        stack_name=name,
        member_count=count,
        external_processes=external,
        database=database,
        blockchain_provider=blockchain,
        tokens_provider=tokens,
        firefly_base_port=options.firefly_base_port,
        services_base_port=options.services_base_port,
    )
