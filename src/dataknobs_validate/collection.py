"""Immutable, ordered collections of field specifications."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from functools import lru_cache
from typing import Any

from .exceptions import ConfigurationError, ImmutableCollectionError
from .spec import FieldSpec

logger = logging.getLogger(__name__)

SpecKey = str | int


@lru_cache(maxsize=2)
def boolean_spec(mandatory: bool) -> FieldSpec:
    """Return the shared, unconstrained spec backing boolean shorthand.

    Args:
        mandatory: True for a mandatory field, False for an optional one

    Returns:
        A process-wide FieldSpec constant
    """
    return FieldSpec(optional=not mandatory)


def to_field_spec(key: SpecKey, value: Any) -> FieldSpec:
    """Coerce a shorthand collection entry into a FieldSpec.

    Args:
        key: Entry key, used in error messages
        value: FieldSpec, bool/int shorthand, or a mapping of spec options

    Returns:
        FieldSpec instance

    Raises:
        ConfigurationError: If the value has an unsupported type
    """
    if isinstance(value, FieldSpec):
        return value
    if isinstance(value, (bool, int)):
        return boolean_spec(bool(value))
    if isinstance(value, Mapping):
        return FieldSpec(value)
    raise ConfigurationError(
        f"Spec values must be a FieldSpec, a boolean or a mapping of options; "
        f"got {type(value).__name__} for {key!r}",
        context={"key": key},
    )


class SpecCollection(Mapping[SpecKey, FieldSpec]):
    """Read-only ordered mapping of field key to FieldSpec.

    Keys are non-empty strings or integers. Values may be given in shorthand:

    - a FieldSpec is used as-is
    - ``True`` (or a nonzero int) means a mandatory field without rules
    - ``False`` (or zero) means an optional field without rules
    - a mapping is passed to the FieldSpec constructor

    A sequence of entries is indexed by position.

    Example:
        ```python
        specs = SpecCollection({
            "name": {"type": "string", "max_length_chars": 30},
            "nickname": False,
            "email": True,
        })
        specs["name"].validation.options.max_length_chars  # 30
        specs.get("missing")  # None
        ```
    """

    def __init__(self, specs: Mapping[SpecKey, Any] | Sequence[Any] | None = None):
        """Initialize the collection.

        Args:
            specs: Mapping of key to spec, or a sequence of specs

        Raises:
            ConfigurationError: If a key or value is invalid
        """
        if specs is None:
            items: list[tuple[Any, Any]] = []
        elif isinstance(specs, Mapping):
            items = list(specs.items())
        elif isinstance(specs, Sequence) and not isinstance(specs, (str, bytes)):
            items = list(enumerate(specs))
        else:
            raise ConfigurationError(
                f"Specs must be a mapping or a sequence, got {type(specs).__name__}"
            )

        pairs: dict[SpecKey, FieldSpec] = {}
        for key, value in items:
            self._check_key(key)
            pairs[key] = to_field_spec(key, value)
        self._pairs = pairs
        logger.debug(f"Created SpecCollection with keys {list(pairs)}")

    @staticmethod
    def _check_key(key: Any) -> None:
        if isinstance(key, bool) or not ((isinstance(key, str) and key) or isinstance(key, int)):
            raise ConfigurationError(
                f"Only non-empty string or int keys are allowed, got {key!r}", context={"key": key}
            )

    def __getitem__(self, key: SpecKey) -> FieldSpec:
        return self._pairs[key]

    def __contains__(self, key: object) -> bool:
        return key in self._pairs

    def __iter__(self) -> Iterator[SpecKey]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __setitem__(self, key: SpecKey, value: Any) -> None:
        raise ImmutableCollectionError(
            f"Attempt to set key {key!r} on immutable {type(self).__name__}", context={"key": key}
        )

    def __delitem__(self, key: SpecKey) -> None:
        raise ImmutableCollectionError(
            f"Attempt to delete key {key!r} on immutable {type(self).__name__}", context={"key": key}
        )

    def key_list(self) -> list[SpecKey]:
        """Return the keys in order."""
        return list(self._pairs)

    def positional(self) -> list[FieldSpec]:
        """Return the specs in order, ignoring their keys."""
        return list(self._pairs.values())

    def to_dict(self) -> dict[SpecKey, FieldSpec]:
        """Return a snapshot of the underlying key to spec mapping."""
        return dict(self._pairs)

    def __repr__(self) -> str:
        return f"SpecCollection({self._pairs!r})"
