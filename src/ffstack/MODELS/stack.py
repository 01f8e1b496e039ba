"""
Models for persisted stacks and their lifecycle state.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from .network_config import Member, NetworkConfig
from .orchestration_config import Topology


class StackState(str, Enum):
    """
    Lifecycle state recorded for a stack. A stack with no record is uninitialized.
    RESET behaves exactly like INITIALIZED.
    """
    INITIALIZED = "initialized"
    RUNNING = "running"
    STOPPED = "stopped"
    RESET = "reset"


class ResetOutcome(str, Enum):
    """Result of a reset request that did not fail."""
    RESET = "reset"
    DECLINED = "declined"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StackRecord(BaseModel):
    """
    Everything persisted for a named stack: its configuration, derived
    members, IPFS swarm key and generated topology.
    """
    config: NetworkConfig
    members: List[Member]
    swarm_key: str
    topology: Topology
    state: StackState = StackState.INITIALIZED
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)

    @property
    def name(self) -> str:
        return self.config.stack_name

    def with_state(self, state: StackState) -> "StackRecord":
        """Returns a copy of this record moved to ``state``."""
        return self.model_copy(update={"state": state, "updated_at": _now()})
