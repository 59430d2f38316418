"""Rule sets: named, independent checks over a single non-null value.

A RuleSet is usually created implicitly by FieldSpec, but it can also be
used stand-alone:

    ```python
    rules = RuleSet(type="string", max_length=10, regex=r"^[a-z]+$")
    rules.validate("hello")     # True
    rules.validate("Hello")     # False
    rules.last_failure          # 'regex'
    ```

Checks are applied in a fixed order and evaluation stops at the first
failure: types, allowed_values, allowed_values_nc, resource_type,
max_length, min_length, max_length_chars, min_length_chars, max_value,
min_value, isa, regex, callback, callbacks.
"""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from re import Pattern as RegexPattern
from types import MappingProxyType
from typing import Any

from .exceptions import ConfigurationError, ValidationCheckError
from .result import ValidationResult
from .values import (
    NULL,
    RESOURCE_TYPES,
    SCALAR,
    SCALAR_TAGS,
    byte_length,
    canonical_type,
    char_length,
    is_scalar,
    is_sequence,
    matches_value,
    resource_type,
    same_value,
    to_number,
    to_text,
    type_tag,
)

logger = logging.getLogger(__name__)

# Evaluation order. Each rule is checked by its _rule_<name> method, except
# callbacks, which fail as "<name> (callback)".
RULE_ORDER = (
    "types",
    "allowed_values",
    "allowed_values_nc",
    "resource_type",
    "max_length",
    "min_length",
    "max_length_chars",
    "min_length_chars",
    "max_value",
    "min_value",
    "isa",
    "regex",
    "callback",
    "callbacks",
)

# Rules that also apply to a null value.
NULL_AWARE_RULES = frozenset({"types", "allowed_values", "allowed_values_nc"})

OPTION_ALIASES = {
    "mb_max_length": "max_length_chars",
    "mb_min_length": "min_length_chars",
}

NULL_CONTRACT_WARNING = "RuleSet checked a null value; null is handled by the caller and treated as valid"


@dataclass(frozen=True)
class RuleOptions:
    """Read-only view of the options a RuleSet was built with."""

    types: tuple[str, ...] | None = None
    allowed_values: tuple[Any, ...] | None = None
    allowed_values_nc: tuple[Any, ...] | None = None
    resource_type: str | None = None
    max_length: int | None = None
    min_length: int | None = None
    max_length_chars: int | None = None
    min_length_chars: int | None = None
    max_value: Any = None
    min_value: Any = None
    isa: type | tuple[type, ...] | str | None = None
    regex: RegexPattern[str] | None = None
    callback: Callable[[Any], Any] | None = None
    callbacks: Mapping[str, Callable[[Any], Any]] | None = None


class RuleSet:
    """A fixed set of named constraints evaluated against a single value.

    RuleSets are immutable after construction. ``check()`` is pure; the
    ``validate()`` convenience method additionally records the name of the
    failed rule in ``last_failure``, which is kept per thread.
    """

    def __init__(self, config: Mapping[str, Any] | None = None, **options: Any):
        """Initialize the rule set.

        Args:
            config: Mapping of rule options
            **options: Rule options given as keyword arguments (override config)

        Raises:
            ConfigurationError: If an option is unknown or malformed
        """
        merged: dict[str, Any] = dict(config or {})
        merged.update(options)
        self._options = self._parse_options(merged)
        self._local = threading.local()
        self._folded_nc = self._fold_values(self._options.allowed_values_nc)
        self._declares_null = bool(
            (self._options.types and NULL in self._options.types)
            or any(v is None for v in self._options.allowed_values or ())
            or any(v is None for v in self._options.allowed_values_nc or ())
        )
        self._admits_null = self._declares_null and self._first_failure(None) is None
        logger.debug(f"Created {self!r}")

    @classmethod
    def _parse_options(cls, args: dict[str, Any]) -> RuleOptions:
        parsed: dict[str, Any] = {}
        types: list[str] = []

        for key, value in args.items():
            if not isinstance(key, str):
                raise ConfigurationError(f"Option names must be strings, got {key!r}")
            if key.startswith("_"):
                continue
            if key in OPTION_ALIASES:
                canonical = OPTION_ALIASES[key]
                if canonical in args:
                    raise ConfigurationError(
                        f'The "{key}" option is an alias of "{canonical}"; give only one of them',
                        option=key,
                    )
                key = canonical

            if key == "type":
                types.extend(cls._parse_types(key, [value]))
            elif key == "types":
                if (
                    isinstance(value, (str, bytes))
                    or not isinstance(value, (list, tuple, set, frozenset))
                    or not value
                ):
                    raise ConfigurationError(
                        'The "types" option must be a non-empty collection of type names', option=key
                    )
                types.extend(cls._parse_types(key, value))
            elif key in ("allowed_values", "allowed_values_nc"):
                parsed[key] = cls._parse_allowed_values(key, value)
            elif key in ("max_length", "min_length", "max_length_chars", "min_length_chars"):
                parsed[key] = cls._parse_length(key, value)
            elif key in ("max_value", "min_value"):
                number = to_number(value)
                if number is None:
                    raise ConfigurationError(f'The "{key}" option must be numeric', option=key)
                parsed[key] = number
            elif key == "isa":
                parsed[key] = cls._parse_isa(value)
            elif key == "regex":
                parsed[key] = cls._parse_regex(value)
            elif key == "resource_type":
                if not isinstance(value, str) or value not in RESOURCE_TYPES:
                    raise ConfigurationError(
                        f'The "resource_type" option must be one of {sorted(RESOURCE_TYPES)}',
                        option=key,
                    )
                parsed[key] = value
            elif key == "callback":
                if not callable(value):
                    raise ConfigurationError('The "callback" option must be callable', option=key)
                parsed[key] = value
            elif key == "callbacks":
                parsed[key] = cls._parse_callbacks(value)
            else:
                raise ConfigurationError(f'Unknown option "{key}"', option=key)

        if types:
            parsed["types"] = tuple(dict.fromkeys(types))

        for low, high in (
            ("min_length", "max_length"),
            ("min_length_chars", "max_length_chars"),
            ("min_value", "max_value"),
        ):
            if parsed.get(low) is not None and parsed.get(high) is not None and parsed[low] > parsed[high]:
                raise ConfigurationError(
                    f'The "{low}" option ({parsed[low]}) cannot be greater than "{high}" ({parsed[high]})',
                    option=low,
                )

        return RuleOptions(**parsed)

    @staticmethod
    def _parse_types(key: str, names: Any) -> list[str]:
        types = []
        for name in names:
            if not isinstance(name, str):
                raise ConfigurationError(f'The "{key}" option must contain type name strings', option=key)
            tag = canonical_type(name)
            if tag is None:
                raise ConfigurationError(f'Unknown type "{name}" in the "{key}" option', option=key)
            types.append(tag)
        return types

    @staticmethod
    def _parse_allowed_values(key: str, value: Any) -> tuple[Any, ...]:
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)) or not value:
            raise ConfigurationError(
                f'The "{key}" option must be a collection containing at least 1 value', option=key
            )
        unique: list[Any] = []
        for item in value:
            if not (item is None or is_scalar(item)):
                raise ConfigurationError(f'The "{key}" option must contain scalar or null values', option=key)
            if not any(item is u if item is None else same_value(item, u) for u in unique):
                unique.append(item)
        return tuple(unique)

    @staticmethod
    def _parse_length(key: str, value: Any) -> int:
        if isinstance(value, str) and value.isdigit():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigurationError(f'The "{key}" option must be an unsigned integer', option=key)
        return value

    @staticmethod
    def _parse_isa(value: Any) -> type | tuple[type, ...] | str:
        if isinstance(value, str) and value:
            return value
        if isinstance(value, type):
            return value
        if isinstance(value, tuple) and value and all(isinstance(v, type) for v in value):
            return value
        raise ConfigurationError('The "isa" option must be a class, a tuple of classes or a class name', option="isa")

    @staticmethod
    def _parse_regex(value: Any) -> RegexPattern[str]:
        if isinstance(value, RegexPattern):
            return value
        if not (isinstance(value, str) and value):
            raise ConfigurationError(
                'The "regex" option must be a regular expression string or compiled pattern', option="regex"
            )
        try:
            return re.compile(value)
        except re.error as e:
            raise ConfigurationError(f'Invalid "regex" option {value!r}: {e}', option="regex") from e

    @staticmethod
    def _parse_callbacks(value: Any) -> Mapping[str, Callable[[Any], Any]]:
        if not isinstance(value, Mapping) or not value:
            raise ConfigurationError(
                'The "callbacks" option must be a mapping containing at least 1 callable', option="callbacks"
            )
        for name, callback in value.items():
            if not isinstance(name, str) or not callable(callback):
                raise ConfigurationError(
                    'The "callbacks" option must map names to callables', option="callbacks"
                )
        return MappingProxyType(dict(value))

    @staticmethod
    def _fold_values(values: tuple[Any, ...] | None) -> tuple[Any, ...]:
        if not values:
            return ()
        return tuple(v.casefold() if isinstance(v, str) else v for v in values)

    @property
    def options(self) -> RuleOptions:
        """The parsed rule options."""
        return self._options

    @property
    def admits_null(self) -> bool:
        """True if null is declared acceptable and passes every rule."""
        return self._admits_null

    @property
    def last_failure(self) -> str | None:
        """Name of the rule the last ``validate()`` call in this thread failed on."""
        return getattr(self._local, "last_failure", None)

    def check(self, value: Any) -> ValidationResult:
        """Evaluate all rules against a value.

        Null values are the caller's responsibility (see FieldSpec). A rule
        set that explicitly admits null (``null`` in its types or ``None``
        among its allowed values) checks it like any other value; otherwise a
        null value is logged and treated as valid.

        Args:
            value: Value to check

        Returns:
            ValidationResult whose ``failure`` names the failed rule
        """
        if value is None and not self._declares_null:
            logger.warning(NULL_CONTRACT_WARNING)
            return ValidationResult.success(value).add_warning(NULL_CONTRACT_WARNING)

        failure = self._first_failure(value)
        if failure is not None:
            logger.debug(f"Rule {failure!r} failed for {type_tag(value)} value")
            return ValidationResult.fail(value, failure)
        return ValidationResult.success(value)

    def validate(self, value: Any) -> bool:
        """Check a value and record the failed rule name in ``last_failure``.

        Args:
            value: Value to check

        Returns:
            True if the value passed all rules
        """
        result = self.check(value)
        self._local.last_failure = result.failure
        return result.valid

    def validate_ex(self, value: Any) -> None:
        """Check a value, raising on failure. Null values are skipped.

        Raises:
            ValidationCheckError: If the value fails a rule
        """
        if value is None:
            return
        if not self.validate(value):
            raise ValidationCheckError(self.last_failure or "unknown", value)

    def _first_failure(self, value: Any) -> str | None:
        for name in RULE_ORDER:
            option = getattr(self._options, name)
            if option is None:
                continue
            if value is None and name not in NULL_AWARE_RULES:
                continue
            if name == "callbacks":
                failed = self._failed_callback(value, option)
                if failed is not None:
                    return f"{failed} (callback)"
            elif not getattr(self, f"_rule_{name}")(value, option):
                return name
        return None

    @staticmethod
    def _rule_types(value: Any, types: tuple[str, ...]) -> bool:
        tag = type_tag(value)
        return tag in types or (SCALAR in types and tag in SCALAR_TAGS)

    def _rule_allowed_values(self, value: Any, allowed: tuple[Any, ...]) -> bool:
        return self._allowed(value, allowed, fold=False)

    def _rule_allowed_values_nc(self, value: Any, allowed: tuple[Any, ...]) -> bool:
        return self._allowed(value, self._folded_nc, fold=True)

    @staticmethod
    def _rule_resource_type(value: Any, category: str) -> bool:
        return resource_type(value) == category

    @staticmethod
    def _rule_max_length(value: Any, bound: int) -> bool:
        length = byte_length(value)
        return length is not None and length <= bound

    @staticmethod
    def _rule_min_length(value: Any, bound: int) -> bool:
        length = byte_length(value)
        return length is not None and length >= bound

    @staticmethod
    def _rule_max_length_chars(value: Any, bound: int) -> bool:
        length = char_length(value)
        return length is not None and length <= bound

    @staticmethod
    def _rule_min_length_chars(value: Any, bound: int) -> bool:
        length = char_length(value)
        return length is not None and length >= bound

    @staticmethod
    def _rule_max_value(value: Any, bound: Any) -> bool:
        number = to_number(value)
        return number is not None and number <= bound

    @staticmethod
    def _rule_min_value(value: Any, bound: Any) -> bool:
        number = to_number(value)
        return number is not None and number >= bound

    @staticmethod
    def _rule_isa(value: Any, isa: type | tuple[type, ...] | str) -> bool:
        if isinstance(isa, str):
            return any(
                isa in (cls.__name__, f"{cls.__module__}.{cls.__qualname__}")
                for cls in type(value).__mro__
            )
        return isinstance(value, isa)

    @staticmethod
    def _rule_regex(value: Any, pattern: RegexPattern[str]) -> bool:
        text = to_text(value)
        return text is not None and pattern.search(text) is not None

    @staticmethod
    def _rule_callback(value: Any, callback: Callable[[Any], Any]) -> bool:
        return bool(callback(value))

    @staticmethod
    def _failed_callback(value: Any, callbacks: Mapping[str, Callable[[Any], Any]]) -> str | None:
        for name, callback in callbacks.items():
            if not callback(value):
                return name
        return None

    @staticmethod
    def _member(item: Any, allowed: tuple[Any, ...], fold: bool) -> bool:
        if item is None:
            return any(a is None for a in allowed)
        if fold and isinstance(item, str):
            item = item.casefold()
        if not is_scalar(item):
            return False
        return any(a is not None and matches_value(item, a) for a in allowed)

    def _allowed(self, value: Any, allowed: tuple[Any, ...], fold: bool) -> bool:
        if is_sequence(value):
            return all(self._member(item, allowed, fold) for item in value)
        if value is None or is_scalar(value):
            return self._member(value, allowed, fold)
        return False

    def to_dict(self) -> dict[str, Any]:
        """Return the configured options (unset options omitted).

        Returns:
            Dictionary of option name to value; regexes as pattern strings
        """
        result: dict[str, Any] = {}
        for f in fields(self._options):
            value = getattr(self._options, f.name)
            if value is None:
                continue
            if f.name == "regex":
                value = value.pattern
            elif f.name == "callbacks":
                value = dict(value)
            elif isinstance(value, tuple) and f.name != "isa":
                value = list(value)
            result[f.name] = value
        return result

    def __repr__(self) -> str:
        options = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"RuleSet({options})"
