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
Unit tests for the volume manager.
"""
import os

import pytest

from ffstack.exceptions import ResourceError, VolumeClearError
from ffstack.MANAGERS.volume_manager import VolumeManager


def fill(path):
    os.makedirs(os.path.join(path, "nested"), exist_ok=True)
    with open(os.path.join(path, "data.db"), "w") as f:
        f.write("rows")
    with open(os.path.join(path, "nested", "blob"), "w") as f:
        f.write("blob")


class TestVolumeManager:
    """Tests for VolumeManager."""

    def test_create_volume(self, tmp_path):
        vm = VolumeManager(str(tmp_path / "volumes"))
        path = vm.create_volume("postgres_0")
        assert os.path.isdir(path)
        assert vm.list_volumes() == ["postgres_0"]

    def test_create_volume_idempotent(self, tmp_path):
        vm = VolumeManager(str(tmp_path))
        assert vm.create_volume("v") == vm.create_volume("v")

    def test_list_volumes_missing_root(self, tmp_path):
        vm = VolumeManager(str(tmp_path / "missing"))
        assert vm.list_volumes() == []

    @pytest.mark.parametrize("name", ["", "..", "a/b"])
    def test_invalid_volume_name(self, tmp_path, name):
        vm = VolumeManager(str(tmp_path))
        with pytest.raises(ValueError):
            vm.volume_path(name)

    def test_clear_volume_keeps_directory(self, tmp_path):
        vm = VolumeManager(str(tmp_path))
        path = vm.create_volume("ipfs_data_0")
        fill(path)
        vm.clear_volume("ipfs_data_0")
        assert os.path.isdir(path)
        assert os.listdir(path) == []

    def test_clear_missing_volume_creates_it(self, tmp_path):
        vm = VolumeManager(str(tmp_path))
        vm.clear_volume("never_created")
        assert os.path.isdir(vm.volume_path("never_created"))

    def test_clear_volumes_reports_every_failure(self, tmp_path, monkeypatch):
        vm = VolumeManager(str(tmp_path), stack_name="dev")
        for name in ("a", "b", "c"):
            fill(vm.create_volume(name))

        original = VolumeManager.clear_volume

        def flaky(self, name):
            if name == "b":
                raise PermissionError(f"denied: {name}")
            return original(self, name)

        monkeypatch.setattr(VolumeManager, "clear_volume", flaky)

        with pytest.raises(VolumeClearError) as exc_info:
            vm.clear_volumes(["a", "b", "c"])
        err = exc_info.value
        assert isinstance(err, ResourceError)
        assert list(err.failures) == ["b"]
        assert err.cleared == ["a", "c"]
        assert "b" in str(err)
        assert os.listdir(vm.volume_path("a")) == []
        assert os.listdir(vm.volume_path("b")) != []
