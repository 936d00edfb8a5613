"""
Registration table mapping operation ids to their conditions.

Populated once at startup, then frozen. This is the default condition
metadata source used by the authorizer.
"""
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from gatekeeper.features.authorization.errors import ConfigurationError
from gatekeeper.features.conditions.types import OPEN, Condition, condition_from_dict
from gatekeeper.utils import get_logger


log = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class ConditionRegistry:
    """
    Explicit table of operation conditions.

    Usage:
        registry = ConditionRegistry()

        @registry.operation("reports.export", all_of(has("reports:read"), has("reports:export")))
        async def export_report(...):
            ...

        registry.freeze()
    """

    def __init__(self):
        self._conditions: dict[str, Condition] = {}
        self._frozen = False

    def __contains__(self, operation_id: str) -> bool:
        return operation_id in self._conditions

    def __len__(self) -> int:
        return len(self._conditions)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, operation_id: str, condition: Condition | None = None) -> Condition:
        """
        Attach a condition to an operation.

        Registering an equal condition twice is accepted. A different condition
        for an already registered operation is a configuration error.
        """
        if self._frozen:
            raise ConfigurationError(f"Registry is frozen; cannot register {operation_id!r}")

        condition = OPEN if condition is None else condition
        existing = self._conditions.get(operation_id)
        if existing is not None:
            if existing != condition:
                raise ConfigurationError(
                    f"Operation {operation_id!r} is already registered with a different condition"
                )
            return existing

        self._conditions[operation_id] = condition
        log.debug(f"Registered condition for operation {operation_id!r}")
        return condition

    def operation(self, operation_id: str, condition: Condition | None = None) -> Callable[[F], F]:
        """Decorator form of `register`; returns the function unchanged."""
        def decorator(func: F) -> F:
            self.register(operation_id, condition)
            return func
        return decorator

    def load(self, mapping: Mapping[str, Any]) -> None:
        """Register every operation of a declarative {operation_id: condition} mapping."""
        for operation_id, data in mapping.items():
            self.register(operation_id, None if data is None else condition_from_dict(data))

    def freeze(self) -> None:
        self._frozen = True
        log.info(f"Condition registry frozen with {len(self._conditions)} operations")

    async def get_condition_for_operation(self, operation_id: str) -> Condition | None:
        return self._conditions.get(operation_id)
