"""
Unit tests for the provider registries.
"""
import pytest

from ffstack.exceptions import InputError, UnknownProviderError
from ffstack.MODELS.providers import (
    SUPPORTED_BLOCKCHAIN_PROVIDERS,
    BlockchainProvider,
    DatabaseSelection,
    TokensProvider,
    parse_provider,
)


class TestRegistries:
    """Tests for parsing provider tokens."""

    def test_parse_known_tokens(self):
        assert DatabaseSelection.from_string("postgres") is DatabaseSelection.POSTGRES
        assert DatabaseSelection.from_string("sqlite3") is DatabaseSelection.SQLITE3
        assert BlockchainProvider.from_string("besu") is BlockchainProvider.BESU
        assert TokensProvider.from_string("none") is TokensProvider.NONE

    def test_parse_is_case_sensitive(self):
        with pytest.raises(UnknownProviderError):
            DatabaseSelection.from_string("Postgres")

    def test_unknown_token_carries_options(self):
        with pytest.raises(UnknownProviderError) as exc_info:
            TokensProvider.from_string("erc20")
        err = exc_info.value
        assert isinstance(err, InputError)
        assert err.kind == "tokens provider"
        assert err.value == "erc20"
        assert err.valid_options == ["none", "erc1155"]
        assert "erc1155" in str(err)

    def test_options_in_declaration_order(self):
        assert DatabaseSelection.options() == ["sqlite3", "postgres"]
        assert BlockchainProvider.options() == ["geth", "besu"]

    def test_parse_provider_by_kind(self):
        assert parse_provider("database", "postgres") is DatabaseSelection.POSTGRES
        with pytest.raises(UnknownProviderError):
            parse_provider("blockchain provider", "quorum")

    def test_managed_database(self):
        assert DatabaseSelection.POSTGRES.is_managed
        assert not DatabaseSelection.SQLITE3.is_managed

    def test_supported_is_narrower_than_registry(self):
        supported = set(SUPPORTED_BLOCKCHAIN_PROVIDERS)
        assert supported < set(BlockchainProvider)
        assert BlockchainProvider.GETH in supported
