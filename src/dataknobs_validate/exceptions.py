"""Exception hierarchy for the validate package.

All exceptions extend the common dataknobs exception framework, so they can be
caught as ``DataknobsError`` and carry a ``context`` dictionary describing the
failure.

Hierarchy:
    ValidateError
    ├── ConfigurationError        (invalid options at construction time)
    ├── ValidationCheckError      (a value failed a named check)
    │   └── NamedValidationCheckError  (... for a named or positional field)
    ├── UnknownKeyError           (unexpected key or positional value)
    └── ImmutableCollectionError  (attempt to modify a SpecCollection)

Example:
    ```python
    from dataknobs_validate import RecordValidator, NamedValidationCheckError

    validator = RecordValidator(specs={"age": {"type": "int", "min_value": 0}})
    try:
        validator.validate({"age": -1})
    except NamedValidationCheckError as e:
        print(e.name, e.check)  # age min_value
    ```
"""

from __future__ import annotations

from typing import Any

from dataknobs_common.exceptions import (
    ConfigurationError as BaseConfigurationError,
    DataknobsError,
    OperationError,
    ValidationError as BaseValidationError,
)

from .values import is_scalar, to_text, type_tag


def placeholder_value(value: Any) -> str | None:
    """Render a scalar value for use in error messages.

    Booleans render as ``true``/``false``, strings are double-quoted and other
    scalars are stringified. Non-scalars return None.
    """
    if not is_scalar(value):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, bytes)):
        return f'"{to_text(value)}"'
    return str(value)


class ValidateError(DataknobsError):
    """Base exception for the validate package."""

    pass


class ConfigurationError(ValidateError, BaseConfigurationError):
    """Raised when a rule set, spec, collection or validator is misconfigured.

    Always raised during construction, never during validation.
    """

    def __init__(self, message: str, option: str | None = None, context: dict[str, Any] | None = None):
        ctx = dict(context or {})
        if option is not None:
            ctx["option"] = option
        super().__init__(message, context=ctx)
        self.option = option


class ValidationCheckError(ValidateError, BaseValidationError):
    """Raised when a value fails a named validation check.

    Attributes:
        check: Name of the check that failed (e.g. ``"max_length"``)
        value: The value that failed validation
    """

    def __init__(
        self,
        check: str,
        value: Any,
        message: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.check = check
        self.value = value
        if message is None:
            message = f'Failed validation check "{check}" for {type_tag(value)} value'
            placeholder = placeholder_value(value)
            if placeholder is not None:
                message += f" {placeholder}"
        ctx = {"check": check, "value": value}
        ctx.update(context or {})
        super().__init__(message, context=ctx)

    @property
    def placeholder(self) -> str | None:
        """String form of the offending value for messages, None for non-scalars."""
        return placeholder_value(self.value)

    @property
    def value_simple(self) -> str:
        """Short description of the offending value, e.g. ``string 'abc'``."""
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if is_scalar(self.value):
            return f"{type_tag(self.value)} '{to_text(self.value)}'"
        return type_tag(self.value)


class NamedValidationCheckError(ValidationCheckError):
    """Raised by RecordValidator when a field fails validation.

    Attributes:
        name: Field name, or the stringified index in positional validation
    """

    def __init__(
        self,
        name: str,
        check: str,
        value: Any,
        message: str | None = None,
    ):
        self.name = name
        if message is None:
            message = f'Parameter "{name}" failed validation "{check}" for {type_tag(value)} value'
            placeholder = placeholder_value(value)
            if placeholder is not None:
                message += f" {placeholder}"
        super().__init__(check, value, message, context={"name": name})


class UnknownKeyError(ValidateError, BaseValidationError):
    """Raised when a record contains a key (or position) without a spec."""

    def __init__(self, message: str, key: Any = None):
        super().__init__(message, context={"key": key})
        self.key = key


class ImmutableCollectionError(ValidateError, OperationError):
    """Raised on any attempt to modify a SpecCollection after construction."""

    pass


__all__ = [
    "ValidateError",
    "ConfigurationError",
    "ValidationCheckError",
    "NamedValidationCheckError",
    "UnknownKeyError",
    "ImmutableCollectionError",
    "placeholder_value",
]
