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
Exceptions raised by stack validation, topology generation and lifecycle management.

Errors fall into three families:

- InputError: a proposed configuration value is unusable. Raised before
  anything is persisted and never retried.
- StateError: the named stack is in the wrong lifecycle state for the
  requested operation (missing on reset, already present on init).
- ResourceError: persisted state or volume data could not be read, written
  or cleared. The recorded stack state is never advanced on these.
"""
from typing import List, Sequence


class FFStackError(Exception):
    """Base exception for all stack operations."""


class InputError(FFStackError):
    """A configuration value supplied by the caller is invalid."""


class StateError(FFStackError):
    """The stack is not in a state that permits the operation."""


class ResourceError(FFStackError):
    """Reading, writing or clearing stack resources failed."""


class EmptyNameError(InputError):
    def __init__(self):
        super().__init__("stack name must not be empty")


class InvalidNameError(InputError):
    def __init__(self, stack_name: str):
        self.stack_name = stack_name
        super().__init__(
            f"stack name '{stack_name}' is not valid - it must not be '.' or '..' "
            f"and must not contain path separators"
        )


class NameConflictError(InputError, StateError):
    """Raised on init when a stack of the same name is already persisted."""

    def __init__(self, stack_name: str):
        self.stack_name = stack_name
        super().__init__(f"stack '{stack_name}' already exists")


class NotANumberError(InputError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"invalid number: {value!r}")


class NonPositiveCountError(InputError):
    def __init__(self, count: int):
        self.count = count
        super().__init__("number of members must be greater than zero")


class InvalidExternalCountError(InputError):
    def __init__(self, count: int):
        self.count = count
        super().__init__("number of external processes must not be negative")


class TooManyExternalError(InputError):
    def __init__(self, external_processes: int, member_count: int):
        self.external_processes = external_processes
        self.member_count = member_count
        super().__init__(
            "number of external processes should not be equal to or greater than "
            "the number of members in the network - at least one FireFly core "
            "container must exist to be able to extract and deploy smart contracts"
        )


class UnknownProviderError(InputError):
    """
    Raised when a provider token is not part of its registry.

    :param kind: Registry name, e.g. "database".
    :param value: The rejected input.
    :param valid_options: Every token the registry accepts.
    """

    def __init__(self, kind: str, value: str, valid_options: Sequence[str]):
        self.kind = kind
        self.value = value
        self.valid_options = list(valid_options)
        super().__init__(
            f"\"{value}\" is not a valid {kind} selection. "
            f"Valid options are: {self.valid_options}"
        )


class UnsupportedProviderError(InputError):
    def __init__(self, kind: str, value: str, supported: Sequence[str]):
        self.kind = kind
        self.value = value
        self.supported = list(supported)
        super().__init__(
            f"{', '.join(self.supported)} is currently the only supported {kind} "
            f"provider - support for '{value}' is coming soon"
        )


class PortConflictError(InputError):
    def __init__(self, message: str, ports: Sequence[int] = ()):
        self.ports = list(ports)
        super().__init__(message)


class StackNotFoundError(StateError):
    def __init__(self, stack_name: str):
        self.stack_name = stack_name
        super().__init__(f"stack '{stack_name}' does not exist")


class StackStateError(StateError):
    def __init__(self, stack_name: str, state: str, operation: str):
        self.stack_name = stack_name
        self.state = state
        super().__init__(f"cannot {operation} stack '{stack_name}' while it is {state}")


class TopologyError(FFStackError):
    """A generated topology violates one of its structural invariants."""


class CircularDependencyError(TopologyError):
    def __init__(self, service_name: str):
        self.service_name = service_name
        super().__init__(f"Circular dependency detected involving {service_name}")


class PersistenceError(ResourceError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to access stack data at {path}: {reason}")


class VolumeClearError(ResourceError):
    """
    Raised when one or more volumes could not be cleared.

    ``failures`` maps each volume name to the error text for that volume;
    ``cleared`` lists the volumes that were emptied before the failure was reported.
    """

    def __init__(self, stack_name: str, failures: dict, cleared: List[str]):
        self.stack_name = stack_name
        self.failures = dict(failures)
        self.cleared = list(cleared)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"failed to clear volumes of stack '{stack_name}': {names}")
