"""
On-disk persistence of stack records.

Each stack lives in its own directory under the stacks root::

    <stacks_dir>/<name>/stack.json           the StackRecord
    <stacks_dir>/<name>/docker-compose.yml   the rendered topology
    <stacks_dir>/<name>/volumes/<volume>/    volume data
"""
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from ..CONVERTERS.to_compose import COMPOSE_FILENAME, ComposeConverter
from ..exceptions import PersistenceError, StackNotFoundError
from ..MODELS.stack import StackRecord
from ..UTILS.logging_config import get_logger
from ..VALIDATION.validators import is_valid_stack_name
from .volume_manager import VolumeManager

logger = get_logger(__name__)

RECORD_FILENAME = "stack.json"
VOLUMES_DIRNAME = "volumes"


def _write_atomic(path: Path, content: str):
    """Writes ``content`` to a temp file beside ``path`` and moves it into place."""
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise


class StackStore:
    """
    Loads and saves stack records, one directory per stack.
    """
    def __init__(self, stacks_dir: Union[str, Path]):
        """
        :param stacks_dir: Root directory that holds every stack.
        """
        self.stacks_dir = Path(stacks_dir)

    def stack_dir(self, name: str) -> Path:
        if not is_valid_stack_name(name):
            raise PersistenceError(str(self.stacks_dir / str(name)), "invalid stack name")
        return self.stacks_dir / name

    def record_path(self, name: str) -> Path:
        return self.stack_dir(name) / RECORD_FILENAME

    def compose_path(self, name: str) -> Path:
        return self.stack_dir(name) / COMPOSE_FILENAME

    def exists(self, name: str) -> bool:
        """Reports whether a record for ``name`` has been saved. Never mutates."""
        try:
            return self.record_path(name).is_file()
        except PersistenceError:
            return False

    def list_stacks(self) -> List[str]:
        if not self.stacks_dir.is_dir():
            return []
        return sorted(entry.name for entry in self.stacks_dir.iterdir() if (entry / RECORD_FILENAME).is_file())

    def load(self, name: str) -> StackRecord:
        """
        Reads a stack record.

        :raises StackNotFoundError: If no record exists.
        :raises PersistenceError: If the record cannot be read or parsed.
        """
        path = self.record_path(name)
        if not path.is_file():
            raise StackNotFoundError(name)
        try:
            return StackRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PersistenceError(str(path), str(e)) from e
        except ValidationError as e:
            raise PersistenceError(str(path), f"corrupt stack record: {e.error_count()} validation errors") from e

    def save(self, record: StackRecord):
        """
        Writes the record and its compose file. The record is written last, so
        a stack only becomes visible once both files are in place.

        :raises PersistenceError: If either file cannot be written.
        """
        stack_dir = self.stack_dir(record.name)
        created = not stack_dir.exists()
        try:
            self._save(stack_dir, record)
        except OSError as e:
            logger.error("stack_save_failed", stack=record.name, error=str(e))
            if created:
                shutil.rmtree(stack_dir, ignore_errors=True)
            raise PersistenceError(str(stack_dir), str(e)) from e

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_fixed(0.1),
        reraise=True,
    )
    def _save(self, stack_dir: Path, record: StackRecord):
        stack_dir.mkdir(parents=True, exist_ok=True)
        _write_atomic(stack_dir / COMPOSE_FILENAME, ComposeConverter(record.topology).to_yaml())
        _write_atomic(stack_dir / RECORD_FILENAME, record.model_dump_json(indent=2))

    def discard(self, name: str):
        """Removes everything stored for ``name``, including volume data."""
        shutil.rmtree(self.stack_dir(name), ignore_errors=True)

    def volume_manager(self, name: str) -> VolumeManager:
        return VolumeManager(str(self.stack_dir(name) / VOLUMES_DIRNAME), stack_name=name)
