"""
Condition trees guarding protected operations.

A condition is an immutable tree of `And`, `Or` and `Leaf` nodes. Every
node and every leaf key carries an explicit `kind` discriminator; the
evaluator dispatches on it and never on the Python type of a value.

Examples:
    # reader, and either admin or not the owner
    all_of(has("read"), any_of(has("admin"), lacks("owner")))

    # declarative form, as found in configuration files
    condition_from_dict({"and": ["read", {"or": ["admin", {"key": "owner", "not": True}]}]})
"""
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from gatekeeper.features.authorization.errors import ConfigurationError


class NodeKind(str, Enum):
    """Kinds of condition nodes."""
    AND = "and"
    OR = "or"
    LEAF = "leaf"


class KeyKind(str, Enum):
    """Kinds of leaf keys."""
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass
class InvocationContext:
    """
    Per-call data handed to dynamic predicates.

    The evaluator never looks inside; predicates decide what they need.
    """
    operation_id: str | None = None
    user_id: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)


Predicate = Callable[[InvocationContext], Union[bool, Awaitable[bool]]]


@dataclass(frozen=True)
class StaticKey:
    """Leaf key tested by membership in the user's permission set."""
    name: str
    kind: KeyKind = field(default=KeyKind.STATIC, init=False)


@dataclass(frozen=True)
class DynamicPredicate:
    """Leaf key computed per call from the invocation context."""
    predicate: Predicate
    label: str | None = None
    kind: KeyKind = field(default=KeyKind.DYNAMIC, init=False)

    @property
    def name(self) -> str:
        return self.label or getattr(self.predicate, "__name__", "predicate")


LeafKey = Union[StaticKey, DynamicPredicate]


@dataclass(frozen=True)
class Leaf:
    """Terminal node. Negation exists only here."""
    key: LeafKey
    negated: bool = False
    kind: NodeKind = field(default=NodeKind.LEAF, init=False)


@dataclass(frozen=True)
class And:
    """True when every child is true; true when empty."""
    children: tuple["Condition", ...] = ()
    kind: NodeKind = field(default=NodeKind.AND, init=False)

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class Or:
    """True when any child is true; also true when empty."""
    children: tuple["Condition", ...] = ()
    kind: NodeKind = field(default=NodeKind.OR, init=False)

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))


Condition = Union[And, Or, Leaf]

OPEN = And()


# ============================================================================
# Builders
# ============================================================================

def has(key: str) -> Leaf:
    """Leaf requiring `key` in the permission set."""
    return Leaf(StaticKey(key))


def lacks(key: str) -> Leaf:
    """Leaf requiring `key` to be absent from the permission set."""
    return Leaf(StaticKey(key), negated=True)


def check(predicate: Predicate, negated: bool = False, label: str | None = None) -> Leaf:
    """Leaf backed by a sync or async predicate over the invocation context."""
    return Leaf(DynamicPredicate(predicate, label), negated=negated)


def all_of(*children: Condition) -> And:
    return And(children)


def any_of(*children: Condition) -> Or:
    return Or(children)


# ============================================================================
# Declarative form
# ============================================================================

def condition_from_dict(data: Any) -> Condition:
    """
    Build a condition from its declarative form.

    Accepted shapes:
        "perm"                          static leaf
        {"key": "perm", "not": true}    static leaf, "not" optional
        {"and": [...]}                  conjunction
        {"or": [...]}                   disjunction

    Raises:
        ConfigurationError: for any other shape
    """
    if isinstance(data, str):
        if not data:
            raise ConfigurationError("Leaf key must be a non-empty string: ''")
        return has(data)

    if not isinstance(data, dict) or len(data) == 0:
        raise ConfigurationError(f"Invalid condition: {data!r}")

    if "and" in data or "or" in data:
        if len(data) != 1:
            raise ConfigurationError(f"Composite condition must have exactly one operator: {data!r}")
        operator, children = next(iter(data.items()))
        if not isinstance(children, list):
            raise ConfigurationError(f"Operands of {operator!r} must be a list: {children!r}")
        parsed = tuple(condition_from_dict(child) for child in children)
        return And(parsed) if operator == "and" else Or(parsed)

    if "key" in data:
        unknown = set(data) - {"key", "not"}
        if unknown:
            raise ConfigurationError(f"Unknown leaf fields {sorted(unknown)} in {data!r}")
        key = data["key"]
        if not isinstance(key, str) or not key:
            raise ConfigurationError(f"Leaf key must be a non-empty string: {key!r}")
        negated = data.get("not", False)
        if not isinstance(negated, bool):
            raise ConfigurationError(f"Leaf 'not' must be a boolean: {negated!r}")
        return Leaf(StaticKey(key), negated=negated)

    raise ConfigurationError(f"Invalid condition: {data!r}")
