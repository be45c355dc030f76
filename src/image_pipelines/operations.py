"""Named operations the pipeline invokes by deterministic name.

Environment up/down, image builds and test runners are registered here
as zero-argument callables. The engine only ever refers to them by name.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from image_pipelines.errors import ConfigurationError

Operation = Callable[[], Any]


def operation_name(verb: str, subject: str) -> str:
    """Compute ``<verb><Subject>`` with only the first letter upper-cased.

    >>> operation_name("up", "integrationStack")
    'upIntegrationStack'
    """
    if not subject:
        return verb
    return f"{verb}{subject[0].upper()}{subject[1:]}"


class OperationRegistry:
    """Name -> callable lookup for externally owned operations."""

    def __init__(self, operations: Mapping[str, Operation] | None = None) -> None:
        self._operations: dict[str, Operation] = dict(operations or {})

    def register(self, name: str, operation: Operation) -> None:
        if name in self._operations:
            raise ConfigurationError(f"Operation '{name}' is already registered")
        self._operations[name] = operation

    def find(self, name: str | None) -> Operation | None:
        if name is None:
            return None
        return self._operations.get(name)

    def names(self) -> list[str]:
        return sorted(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    async def execute(self, operation: str | Operation) -> Any:
        """Run an operation by name or reference and wait for it.

        Raises:
            ConfigurationError: If a name is given that is not registered.
        """
        if isinstance(operation, str):
            fn = self.find(operation)
            if fn is None:
                raise ConfigurationError(f"Operation '{operation}' not found")
        else:
            fn = operation

        result = fn()
        if inspect.isawaitable(result):
            result = await result
        return result
