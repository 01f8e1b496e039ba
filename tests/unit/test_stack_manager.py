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
Unit tests for the stack lifecycle manager.
"""
import os

import pytest

from ffstack.exceptions import (
    InputError,
    InvalidNameError,
    NameConflictError,
    NonPositiveCountError,
    PersistenceError,
    StackNotFoundError,
    StackStateError,
    TooManyExternalError,
    UnsupportedProviderError,
    VolumeClearError,
)
from ffstack.MANAGERS.stack_manager import StackManager
from ffstack.MANAGERS.stack_store import StackStore
from ffstack.MANAGERS.volume_manager import VolumeManager
from ffstack.MODELS.network_config import InitOptions
from ffstack.MODELS.stack import ResetOutcome, StackState


@pytest.fixture
def store(tmp_path):
    return StackStore(tmp_path / "stacks")


def write_data(store, stack, volume):
    path = store.volume_manager(stack).volume_path(volume)
    with open(os.path.join(path, "data"), "w") as f:
        f.write("state")
    return path


class TestInitStack:

    def test_init_persists_record(self, store):
        manager = StackManager(store)
        record = manager.init_stack("stack1", 2, InitOptions(database="postgres"))

        assert manager.check_exists("stack1")
        assert record.state == StackState.INITIALIZED
        assert store.load("stack1") == record
        assert store.volume_manager("stack1").list_volumes() == sorted(record.topology.volumes)

    def test_init_accepts_count_string(self, store):
        record = StackManager(store).init_stack("stack1", "3", InitOptions(external_processes=2))
        assert [n for n in record.topology.services if n.startswith("firefly_core_")] == ["firefly_core_2"]

    def test_init_existing_stack(self, store):
        manager = StackManager(store)
        manager.init_stack("stack1", 1)
        with pytest.raises(NameConflictError):
            manager.init_stack("stack1", 1)

    @pytest.mark.parametrize("count,options,error", [
        (0, InitOptions(), NonPositiveCountError),
        (2, InitOptions(external_processes=2), TooManyExternalError),
        (1, InitOptions(blockchain_provider="besu"), UnsupportedProviderError),
    ])
    def test_failed_validation_persists_nothing(self, store, count, options, error):
        manager = StackManager(store)
        with pytest.raises(error):
            manager.init_stack("stack1", count, options)
        assert not manager.check_exists("stack1")
        assert manager.list_stacks() == []


    def test_failed_volume_creation_persists_nothing(self, store, monkeypatch):
        def broken(self, names):
            raise OSError("disk full")

        monkeypatch.setattr(VolumeManager, "create_volumes", broken)
        manager = StackManager(store)
        with pytest.raises(PersistenceError):
            manager.init_stack("stack1", 1)
        assert not manager.check_exists("stack1")
        assert not store.stacks_dir.joinpath("stack1").exists()

        monkeypatch.undo()
        assert manager.init_stack("stack1", 1).state == StackState.INITIALIZED

    def test_failed_save_removes_volumes(self, store, monkeypatch):
        def broken(path, content):
            raise OSError("read-only file system")

        monkeypatch.setattr("ffstack.MANAGERS.stack_store._write_atomic", broken)
        manager = StackManager(store)
        with pytest.raises(PersistenceError):
            manager.init_stack("stack1", 1)
        assert not store.stacks_dir.joinpath("stack1").exists()

    @pytest.mark.parametrize("name", ["a/b", ".", ".."])
    def test_path_like_name_is_input_error(self, store, name):
        manager = StackManager(store)
        with pytest.raises(InvalidNameError) as exc_info:
            manager.init_stack(name, 1)
        assert isinstance(exc_info.value, InputError)
        assert manager.list_stacks() == []


class TestResetStack:

    def test_reset_missing_stack(self, store):
        manager = StackManager(store)
        with pytest.raises(StackNotFoundError):
            manager.reset_stack("nosuchstack", force=True)
        assert manager.list_stacks() == []

    def test_forced_reset_clears_volumes(self, store):
        manager = StackManager(store, confirm=lambda prompt: pytest.fail("prompted"))
        manager.init_stack("stack1", 1, InitOptions(database="postgres"))
        path = write_data(store, "stack1", "postgres_0")

        assert manager.reset_stack("stack1", force=True) == ResetOutcome.RESET
        assert os.listdir(path) == []
        record = store.load("stack1")
        assert record.state == StackState.RESET
        assert "postgres_0" in record.topology.services

    def test_declined_reset_is_noop(self, store):
        prompts = []

        def decline(prompt):
            prompts.append(prompt)
            return False

        manager = StackManager(store, confirm=decline)
        manager.init_stack("stack1", 1)
        before = store.record_path("stack1").read_text()
        path = write_data(store, "stack1", "dataexchange_0")

        assert manager.reset_stack("stack1") == ResetOutcome.DECLINED
        assert len(prompts) == 1
        assert "stack1" in prompts[0]
        assert store.record_path("stack1").read_text() == before
        assert os.listdir(path) == ["data"]

    def test_confirmed_reset(self, store):
        manager = StackManager(store, confirm=lambda prompt: True)
        manager.init_stack("stack1", 1)
        assert manager.reset_stack("stack1") == ResetOutcome.RESET

    def test_reset_without_confirm_callback_declines(self, store):
        manager = StackManager(store)
        manager.init_stack("stack1", 1)
        assert manager.reset_stack("stack1") == ResetOutcome.DECLINED

    def test_reset_running_stack(self, store):
        manager = StackManager(store)
        record = manager.init_stack("stack1", 1)
        store.save(record.with_state(StackState.RUNNING))
        with pytest.raises(StackStateError):
            manager.reset_stack("stack1", force=True)

    def test_partial_clear_failure_keeps_state(self, store, monkeypatch):
        manager = StackManager(store)
        manager.init_stack("stack1", 1, InitOptions(database="postgres"))
        before = store.record_path("stack1").read_text()

        original = VolumeManager.clear_volume

        def flaky(self, name):
            if name == "ipfs_data_0":
                raise OSError("device busy")
            return original(self, name)

        monkeypatch.setattr(VolumeManager, "clear_volume", flaky)

        with pytest.raises(VolumeClearError) as exc_info:
            manager.reset_stack("stack1", force=True)
        assert list(exc_info.value.failures) == ["ipfs_data_0"]
        assert store.record_path("stack1").read_text() == before
        assert store.load("stack1").state == StackState.INITIALIZED
