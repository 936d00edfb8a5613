"""
Condition evaluation.

Children of `And`/`Or` are evaluated strictly in order and evaluation stops
at the first child that decides the result. Dynamic predicates may have
side effects, so their call order is part of the contract and must not be
reordered or parallelized.
"""
import inspect
from collections.abc import Collection

from gatekeeper.features.authorization.errors import ConfigurationError
from gatekeeper.features.conditions.types import (
    Condition,
    InvocationContext,
    KeyKind,
    Leaf,
    NodeKind,
)
from gatekeeper.utils import get_logger


log = get_logger(__name__)


async def evaluate(
    condition: Condition | None,
    permissions: Collection[str],
    context: InvocationContext | None = None,
) -> bool:
    """
    Evaluate a condition tree against a permission set.

    Args:
        condition: Tree to evaluate; None means open access (empty And)
        permissions: Effective permission keys of the requester
        context: Per-call data passed to dynamic predicates

    Returns:
        True if the condition holds

    Raises:
        ConfigurationError: if the tree contains a malformed node
    """
    if condition is None:
        return True

    if context is None:
        context = InvocationContext()

    kind = getattr(condition, "kind", None)

    if kind == NodeKind.AND:
        # empty And is vacuously true
        for child in condition.children:
            if not await evaluate(child, permissions, context):
                return False
        return True

    if kind == NodeKind.OR:
        # empty Or is also true
        if not condition.children:
            return True
        for child in condition.children:
            if await evaluate(child, permissions, context):
                return True
        return False

    if kind == NodeKind.LEAF:
        return await _evaluate_leaf(condition, permissions, context)

    raise ConfigurationError(f"Malformed condition node: {condition!r}")


async def _evaluate_leaf(
    leaf: Leaf,
    permissions: Collection[str],
    context: InvocationContext,
) -> bool:
    key = leaf.key
    key_kind = getattr(key, "kind", None)

    if key_kind == KeyKind.STATIC:
        if not isinstance(key.name, str):
            raise ConfigurationError(f"Static key must be a string: {key.name!r}")
        result = key.name in permissions
    elif key_kind == KeyKind.DYNAMIC:
        if not callable(key.predicate):
            raise ConfigurationError(f"Dynamic predicate is not callable: {key.predicate!r}")
        result = key.predicate(context)
        if inspect.isawaitable(result):
            result = await result
        result = bool(result)
    else:
        raise ConfigurationError(f"Leaf key is neither a static key nor a predicate: {key!r}")

    outcome = not result if leaf.negated else result
    log.debug(f"Leaf {key.name!r} negated={leaf.negated} -> {outcome}")
    return outcome
