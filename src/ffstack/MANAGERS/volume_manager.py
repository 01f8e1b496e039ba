"""
Volume management for stacks: named volumes are directories under a stack's volume root.
"""
import os
import shutil
from typing import Dict, Iterable, List

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..exceptions import VolumeClearError
from ..UTILS.logging_config import get_logger

logger = get_logger(__name__)

CLEAR_ATTEMPTS = 3


class VolumeManager:
    """
    Creates and clears the named volumes of one stack.
    """
    def __init__(self, volumes_root: str, stack_name: str = ""):
        """
        Initializes the volume manager.

        :param volumes_root: Directory holding one sub-directory per volume.
        :param stack_name: Name of the owning stack, used in errors and logs.
        """
        self.volumes_root = os.path.abspath(volumes_root)
        self.stack_name = stack_name

    def volume_path(self, name: str) -> str:
        """
        Resolves the directory of a named volume.

        :param name: The volume name.
        :return: The absolute path to the volume.
        """
        if not name or os.sep in name or name in (".", ".."):
            raise ValueError(f"invalid volume name: {name!r}")
        return os.path.join(self.volumes_root, name)

    def create_volume(self, name: str) -> str:
        path = self.volume_path(name)
        os.makedirs(path, exist_ok=True)
        return path

    def create_volumes(self, names: Iterable[str]) -> List[str]:
        return [self.create_volume(name) for name in names]

    def list_volumes(self) -> List[str]:
        if not os.path.isdir(self.volumes_root):
            return []
        return sorted(
            entry for entry in os.listdir(self.volumes_root)
            if os.path.isdir(os.path.join(self.volumes_root, entry))
        )

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(CLEAR_ATTEMPTS),
        wait=wait_fixed(0.2),
        reraise=True,
    )
    def clear_volume(self, name: str):
        """
        Removes everything inside a volume, keeping the volume itself.
        Transient OS errors are retried before giving up.

        :param name: The volume name.
        """
        path = self.volume_path(name)
        if not os.path.isdir(path):
            os.makedirs(path, exist_ok=True)
            return
        for entry in os.listdir(path):
            entry_path = os.path.join(path, entry)
            if os.path.isdir(entry_path) and not os.path.islink(entry_path):
                shutil.rmtree(entry_path)
            else:
                os.remove(entry_path)

    def clear_volumes(self, names: Iterable[str]) -> List[str]:
        """
        Clears every named volume. All volumes are attempted even after a failure.

        :param names: The volumes to clear.
        :return: The cleared volume names.
        :raises VolumeClearError: If any volume could not be cleared.
        """
        cleared: List[str] = []
        failures: Dict[str, str] = {}
        for name in names:
            try:
                self.clear_volume(name)
            except (OSError, ValueError) as e:
                logger.error("volume_clear_failed", stack=self.stack_name, volume=name, error=str(e))
                failures[name] = str(e)
            else:
                cleared.append(name)
        if failures:
            raise VolumeClearError(self.stack_name, failures, cleared)
        return cleared

