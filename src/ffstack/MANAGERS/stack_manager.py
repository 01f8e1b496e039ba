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
Lifecycle of named stacks: creation, existence checks and data reset.
"""
from typing import Callable, List, Optional, Union

from ..BUILDERS.topology_builder import TopologyBuilder, generate_swarm_key
from ..exceptions import PersistenceError, StackNotFoundError, StackStateError
from ..MODELS.network_config import InitOptions, create_members
from ..MODELS.stack import ResetOutcome, StackRecord, StackState
from ..UTILS.logging_config import get_logger
from ..VALIDATION.validators import validate_init
from .stack_store import StackStore

logger = get_logger(__name__)

Confirm = Callable[[str], bool]


def _decline(prompt: str) -> bool:
    return False


class StackManager:
    """
    Creates and resets stacks, persisting them through a StackStore.

    Callers must not run init or reset concurrently for the same stack name.
    """
    def __init__(self, store: StackStore, confirm: Optional[Confirm] = None):
        """
        :param store: Persistence for stack records and volumes.
        :param confirm: Asks the user to approve a destructive action. Returns
            True only on an explicit yes. Without one, unforced resets are declined.
        """
        self.store = store
        self.confirm = confirm or _decline

    def check_exists(self, name: str) -> bool:
        return self.store.exists(name)

    def list_stacks(self) -> List[str]:
        return self.store.list_stacks()

    def init_stack(
        self,
        name: str,
        member_count: Union[str, int],
        options: Optional[InitOptions] = None,
    ) -> StackRecord:
        """
        Validates the requested stack, generates its topology and persists it.
        Nothing is written if validation fails.

        :param name: The new stack's name.
        :param member_count: Number of members, as an int or the string typed by the user.
        :param options: Ports, providers and external process count.
        :return: The persisted record, in state INITIALIZED.
        """
        options = options or InitOptions()
        config = validate_init(name, member_count, options, self.store.exists)

        members = create_members(config)
        swarm_key = generate_swarm_key()
        topology = TopologyBuilder(config, swarm_key, members).build()
        record = StackRecord(
            config=config,
            members=members,
            swarm_key=swarm_key,
            topology=topology,
            state=StackState.INITIALIZED,
        )

        # Volumes first: the stack only exists once stack.json is saved, and
        # a failure at either step leaves nothing behind.
        created = not self.store.stack_dir(name).exists()
        volumes = self.store.volume_manager(name)
        try:
            try:
                volumes.create_volumes(topology.volumes)
            except OSError as e:
                raise PersistenceError(volumes.volumes_root, str(e)) from e
            self.store.save(record)
        except PersistenceError:
            if created:
                self.store.discard(name)
            raise

        logger.info(
            "stack_initialized",
            stack=name,
            members=config.member_count,
            external=config.external_processes,
            database=config.database.value,
            services=len(topology.services),
        )
        return record

    def load_stack(self, name: str) -> StackRecord:
        return self.store.load(name)

    def reset_stack(self, name: str, force: bool = False) -> ResetOutcome:
        """
        Clears the data in every volume of a stack while keeping its
        configuration and topology.

        :param name: The stack to reset.
        :param force: Skip the confirmation prompt.
        :return: RESET when the data was cleared, DECLINED when the user said no.
        :raises StackNotFoundError: If the stack does not exist.
        :raises StackStateError: If the stack is recorded as running.
        :raises VolumeClearError: If any volume could not be cleared; the
            record is left unchanged.
        """
        if not self.store.exists(name):
            raise StackNotFoundError(name)

        record = self.store.load(name)
        if record.state == StackState.RUNNING:
            raise StackStateError(name, record.state.value, "reset")

        if not force:
            if not self.confirm(f"reset all data in FireFly stack '{name}'"):
                logger.info("stack_reset_declined", stack=name)
                return ResetOutcome.DECLINED

        cleared = self.store.volume_manager(name).clear_volumes(record.topology.volumes)
        self.store.save(record.with_state(StackState.RESET))
        logger.info("stack_reset", stack=name, volumes=len(cleared))
        return ResetOutcome.RESET
