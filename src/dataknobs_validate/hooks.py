"""Before/after hook protocol for FieldSpec.

A hook is called with the current value and its return value decides what
happens next:

- ``False``: the hook rejects the value and validation fails
- ``None`` or ``True``: success, the value is kept (in-place changes to
  mutable values such as lists or dicts remain visible)
- ``Replace(x)``: success, the value becomes ``x`` (use this to set ``None``,
  ``False`` or ``True``)
- anything else: success, the returned object replaces the value

This lets plain functions such as ``str.lower`` be used directly as hooks,
and predicates such as ``str.isdigit`` act as pure checks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

Hook = Callable[[Any], Any]


@dataclass(frozen=True)
class Replace:
    """Explicit replacement value returned by a hook."""

    value: Any


def apply_hook(hook: Hook, value: Any) -> tuple[bool, Any]:
    """Run a hook and interpret its return value.

    Args:
        hook: Callable taking the current value
        value: Current value

    Returns:
        Tuple of (accepted, new value)
    """
    outcome = hook(value)
    if outcome is False:
        return False, value
    if outcome is None or outcome is True:
        return True, value
    if isinstance(outcome, Replace):
        return True, outcome.value
    return True, outcome
