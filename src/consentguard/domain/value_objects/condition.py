"""Permission conditions - closed variant evaluated against a request context."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Equals:
    """Context value must equal ``value``."""

    value: Any

    def matches(self, actual: Any) -> bool:
        return actual == self.value


@dataclass(frozen=True)
class Predicate:
    """Context value must satisfy ``fn``. Not persisted; registered at runtime."""

    fn: Callable[[Any], bool]
    name: str = "predicate"

    def matches(self, actual: Any) -> bool:
        return bool(self.fn(actual))


Condition = Equals | Predicate


def conditions_met(conditions: Mapping[str, Condition], context: Mapping[str, Any]) -> bool:
    """Every condition key must be present in context and match."""
    for key, condition in conditions.items():
        if key not in context:
            return False
        if not condition.matches(context[key]):
            return False
    return True


def conditions_from_document(raw: Mapping[str, Any] | None) -> dict[str, Condition]:
    """Stored conditions are literal expected values."""
    if not raw:
        return {}
    return {key: Equals(value) for key, value in raw.items()}


def conditions_to_document(conditions: Mapping[str, Condition]) -> dict[str, Any]:
    """Only Equals conditions can be stored; predicates stay in memory."""
    return {
        key: condition.value
        for key, condition in conditions.items()
        if isinstance(condition, Equals)
    }
