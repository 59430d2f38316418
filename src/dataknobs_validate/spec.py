"""Field specifications: a RuleSet plus null, default, trim and hook policy.

Example:
    ```python
    spec = FieldSpec(
        optional=True,
        description="Lowercase login name",
        before=str.lower,
        max_length=10,
        regex=r"^[a-z]+$",
    )
    result = spec.validate("Alice")
    result.valid   # True
    result.value   # 'alice'
    ```

Rule options (``max_length``, ``regex``, ...) may be given directly, or
wrapped in a ``validation`` option holding a RuleSet or a mapping of rule
options, but not both.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from .exceptions import ConfigurationError, ValidationCheckError
from .hooks import Hook, apply_hook
from .result import ValidationResult
from .rules import RuleSet
from .values import is_empty_string, trim_string, type_tag

logger = logging.getLogger(__name__)

BOOLEAN_OPTIONS = ("allow_empty", "optional", "trim")

MANDATORY = "mandatory"
CALLBACK_BEFORE = "callback before"
CALLBACK_AFTER = "callback after"


class FieldSpec:
    """Specification for validating and normalizing a single field value.

    Validation steps, in order:

    1. Strings are trimmed (``trim``) and empty strings become None unless
       ``allow_empty`` is set.
    2. A None value is replaced by the default, if any. Defaults are trusted
       and skip the remaining steps.
    3. A None value passes only if the spec is optional or its rule set
       explicitly admits null; otherwise it fails as ``mandatory``.
    4. The ``before`` hook may transform or reject the value; step 1 and 3
       are applied again to its result.
    5. The rule set is evaluated.
    6. The ``after`` hook may transform or reject the validated value.
    """

    def __init__(self, config: Mapping[str, Any] | None = None, **options: Any):
        """Initialize the field spec.

        Args:
            config: Mapping of spec and rule options
            **options: Options given as keyword arguments (override config)

        Raises:
            ConfigurationError: If an option is unknown or malformed
        """
        merged: dict[str, Any] = dict(config or {})
        merged.update(options)

        self._allow_empty = False
        self._optional = False
        self._trim = False
        self._default: Any = None
        self._default_factory: Callable[[], Any] | None = None
        self._description: str | None = None
        self._before: Hook | None = None
        self._after: Hook | None = None
        self._validation: RuleSet | None = None
        self._local = threading.local()

        rule_args: dict[str, Any] = {}
        for key, value in merged.items():
            if not isinstance(key, str):
                raise ConfigurationError(f"Option names must be strings, got {key!r}")
            if key == "validation":
                if value is None:
                    continue
                if isinstance(value, Mapping):
                    value = RuleSet(value)
                elif not isinstance(value, RuleSet):
                    raise ConfigurationError(
                        'The "validation" option must be None, a RuleSet or a mapping of rule options',
                        option=key,
                    )
                self._validation = value
            elif key in ("before", "after"):
                if value is None:
                    continue
                if not callable(value):
                    raise ConfigurationError(f'The "{key}" option must be callable', option=key)
                setattr(self, f"_{key}", value)
            elif key == "default":
                self._default = value
            elif key == "default_factory":
                if value is not None and not callable(value):
                    raise ConfigurationError('The "default_factory" option must be callable', option=key)
                self._default_factory = value
            elif key == "description":
                if value is not None and not isinstance(value, str):
                    raise ConfigurationError('The "description" option must be None or a string', option=key)
                self._description = value
            elif key in BOOLEAN_OPTIONS:
                setattr(self, f"_{key}", bool(value))
            elif key.startswith("_"):
                continue
            else:
                rule_args[key] = value

        if self._default is not None and self._default_factory is not None:
            raise ConfigurationError(
                'The "default" and "default_factory" options are mutually exclusive', option="default"
            )

        if rule_args:
            if self._validation is not None:
                raise ConfigurationError(
                    f"Unknown option(s): {', '.join(rule_args)}",
                    context={"options": list(rule_args)},
                )
            self._validation = RuleSet(rule_args)

    @property
    def allow_empty(self) -> bool:
        return self._allow_empty

    @property
    def optional(self) -> bool:
        return self._optional

    @property
    def trim(self) -> bool:
        return self._trim

    @property
    def default(self) -> Any:
        return self._default

    @property
    def default_factory(self) -> Callable[[], Any] | None:
        return self._default_factory

    @property
    def has_default(self) -> bool:
        """True if null values are replaced by a default."""
        return self._default is not None or self._default_factory is not None

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def before(self) -> Hook | None:
        return self._before

    @property
    def after(self) -> Hook | None:
        return self._after

    @property
    def validation(self) -> RuleSet | None:
        return self._validation

    @property
    def last_failure(self) -> str | None:
        """Name of the check the last ``validate()`` call in this thread failed on."""
        return getattr(self._local, "last_failure", None)

    def check(self, value: Any) -> ValidationResult:
        """Validate and normalize a value without recording any state.

        Args:
            value: Value to validate

        Returns:
            ValidationResult holding the final (possibly transformed) value,
            or the name of the failed check
        """
        value = self._normalize(value)

        if value is None:
            if self.has_default:
                return ValidationResult.success(self._make_default())
            return self._check_null()

        if self._before is not None:
            accepted, value = apply_hook(self._before, value)
            if not accepted:
                return self._failed(value, CALLBACK_BEFORE)
            value = self._normalize(value)
            if value is None:
                return self._check_null()

        warnings: list[str] = []
        if self._validation is not None:
            result = self._validation.check(value)
            if not result.valid:
                return self._failed(value, result.failure or "validation")
            warnings = result.warnings

        if self._after is not None:
            accepted, value = apply_hook(self._after, value)
            if not accepted:
                return self._failed(value, CALLBACK_AFTER)

        return ValidationResult.success(value, warnings=warnings)

    def validate(self, value: Any) -> ValidationResult:
        """Validate a value and record the failed check in ``last_failure``.

        Args:
            value: Value to validate

        Returns:
            ValidationResult; truthy on success, with the final value in
            ``result.value``
        """
        result = self.check(value)
        self._local.last_failure = result.failure
        return result

    def validate_ex(self, value: Any) -> Any:
        """Validate a value, raising on failure.

        Args:
            value: Value to validate

        Returns:
            The final (possibly transformed) value

        Raises:
            ValidationCheckError: If the value fails validation
        """
        result = self.validate(value)
        if not result.valid:
            raise ValidationCheckError(result.failure or "validation", result.value)
        return result.value

    def _normalize(self, value: Any) -> Any:
        if self._trim:
            value = trim_string(value)
        if not self._allow_empty and is_empty_string(value):
            value = None
        return value

    def _make_default(self) -> Any:
        if self._default_factory is not None:
            return self._default_factory()
        return self._default

    def _check_null(self) -> ValidationResult:
        if self._optional:
            return ValidationResult.success(None)
        if self._validation is not None and self._validation.admits_null:
            return ValidationResult.success(None)
        return self._failed(None, MANDATORY)

    @staticmethod
    def _failed(value: Any, failure: str) -> ValidationResult:
        logger.debug(f"Check {failure!r} failed for {type_tag(value)} value")
        return ValidationResult.fail(value, failure)

    def to_dict(self) -> dict[str, Any]:
        """Return the configured options, with rule options nested under "validation"."""
        result: dict[str, Any] = {
            "allow_empty": self._allow_empty,
            "optional": self._optional,
            "trim": self._trim,
        }
        for key in ("default", "default_factory", "description", "before", "after"):
            value = getattr(self, f"_{key}")
            if value is not None:
                result[key] = value
        if self._validation is not None:
            result["validation"] = self._validation.to_dict()
        return result

    def __repr__(self) -> str:
        return (
            f"FieldSpec(optional={self._optional}, allow_empty={self._allow_empty}, "
            f"trim={self._trim}, validation={self._validation!r})"
        )
