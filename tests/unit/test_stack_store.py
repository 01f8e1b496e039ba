"""
Unit tests for stack persistence.
"""
import pytest

from ffstack.BUILDERS.topology_builder import generate, generate_swarm_key
from ffstack.exceptions import PersistenceError, StackNotFoundError
from ffstack.MANAGERS.stack_store import StackStore
from ffstack.MODELS.network_config import NetworkConfig, create_members
from ffstack.MODELS.providers import DatabaseSelection
from ffstack.MODELS.stack import StackRecord, StackState


def make_record(name="dev", members=2):
    config = NetworkConfig(stack_name=name, member_count=members, database=DatabaseSelection.POSTGRES)
    swarm_key = generate_swarm_key()
    member_list = create_members(config)
    return StackRecord(
        config=config,
        members=member_list,
        swarm_key=swarm_key,
        topology=generate(config, swarm_key=swarm_key, members=member_list),
    )


class TestStackStore:

    def test_save_and_load(self, tmp_path):
        store = StackStore(tmp_path)
        record = make_record()
        store.save(record)

        assert store.exists("dev")
        assert store.compose_path("dev").is_file()
        loaded = store.load("dev")
        assert loaded == record
        assert loaded.state == StackState.INITIALIZED

    def test_exists_missing(self, tmp_path):
        store = StackStore(tmp_path)
        assert not store.exists("dev")
        assert not store.exists("../etc")

    def test_load_missing(self, tmp_path):
        with pytest.raises(StackNotFoundError):
            StackStore(tmp_path).load("dev")

    def test_load_corrupt(self, tmp_path):
        store = StackStore(tmp_path)
        store.save(make_record())
        store.record_path("dev").write_text("{not json")
        with pytest.raises(PersistenceError):
            store.load("dev")

    def test_list_stacks(self, tmp_path):
        store = StackStore(tmp_path)
        store.save(make_record("b"))
        store.save(make_record("a"))
        (tmp_path / "stray").mkdir()
        assert store.list_stacks() == ["a", "b"]

    def test_invalid_name(self, tmp_path):
        with pytest.raises(PersistenceError):
            StackStore(tmp_path).stack_dir("a/b")

    def test_failed_save_leaves_nothing(self, tmp_path, monkeypatch):
        store = StackStore(tmp_path)

        def broken(path, content):
            raise OSError("disk full")

        monkeypatch.setattr("ffstack.MANAGERS.stack_store._write_atomic", broken)
        with pytest.raises(PersistenceError):
            store.save(make_record())
        assert not store.exists("dev")
        assert not (tmp_path / "dev").exists()

    def test_with_state(self):
        record = make_record()
        moved = record.with_state(StackState.RESET)
        assert moved.state == StackState.RESET
        assert record.state == StackState.INITIALIZED
        assert moved.topology == record.topology
