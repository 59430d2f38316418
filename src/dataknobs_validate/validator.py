"""Record validators: apply a SpecCollection to a whole record.

Typical records are form submissions, CSV rows and keyword or positional
function arguments.

Example:
    ```python
    validator = RecordValidator(
        remove_extra=True,
        specs={
            "name": {"type": "string", "max_length_chars": 30},
            "birthdate": {
                "type": "string",
                "regex": r"^[0-3]\\d/[01]\\d/\\d{4}$",
                "after": lambda s: "-".join(reversed(s.split("/"))),
                "optional": True,
            },
            "score": {"types": ["float", "int"], "min_value": 0, "max_value": 10},
        },
    )
    validator.validate({"name": "Jane", "birthdate": "31/01/1984", "score": 7, "height": 160})
    # {'name': 'Jane', 'birthdate': '1984-01-31', 'score': 7}
    ```
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from .collection import SpecCollection, SpecKey
from .exceptions import (
    ConfigurationError,
    NamedValidationCheckError,
    UnknownKeyError,
    ValidationCheckError,
)
from .values import is_empty_string, is_sequence, trim_string

logger = logging.getLogger(__name__)

BOOLEAN_OPTIONS = ("allow_extra", "remove_extra", "trim", "null_empty_strings", "delete_null")


def _detach(value: Any) -> Any:
    if isinstance(value, Mapping) or is_sequence(value):
        return copy.deepcopy(value)
    return value


@dataclass(frozen=True)
class ValidatorOptions:
    """Read-only view of the options a RecordValidator was built with.

    Attributes:
        allow_extra: Keep keys (or positional values) that have no spec
        remove_extra: Drop keys (or positional values) that have no spec
        trim: Strip whitespace from all string values first
        null_empty_strings: Replace empty strings with None (after trim)
        delete_null: Drop keys holding None or empty strings unless their
            spec has a default (mapping records only)
        prefix: Prepended to key names in errors, for nested validators
    """

    allow_extra: bool = False
    remove_extra: bool = False
    trim: bool = False
    null_empty_strings: bool = False
    delete_null: bool = False
    prefix: str = ""


class RecordValidator:
    """Validates (and possibly transforms) mapping or positional records.

    Without specs, records are only normalized (trim, null_empty_strings,
    delete_null) and returned. Validation is fail-fast: the first failing
    field raises NamedValidationCheckError.

    The validator holds no per-call state and can be reused freely. Input
    records are never modified: container values (lists, dicts, sets) are
    deep-copied before hooks can mutate them in place.
    """

    def __init__(self, config: Mapping[str, Any] | None = None, **options: Any):
        """Initialize the validator.

        Args:
            config: Mapping of validator options
            **options: Options given as keyword arguments (override config).
                ``specs`` may be a SpecCollection, a mapping or a sequence.

        Raises:
            ConfigurationError: If an option is unknown or malformed
        """
        merged: dict[str, Any] = dict(config or {})
        merged.update(options)

        parsed: dict[str, Any] = {}
        specs: SpecCollection | None = None
        for key, value in merged.items():
            if not isinstance(key, str):
                raise ConfigurationError(f"Option names must be strings, got {key!r}")
            if value is None:
                continue
            if key == "specs":
                if isinstance(value, SpecCollection):
                    specs = value
                elif isinstance(value, (Mapping, list, tuple)):
                    specs = SpecCollection(value)
                else:
                    raise ConfigurationError(
                        'The "specs" option must be a SpecCollection, a mapping or a sequence of specs',
                        option=key,
                    )
            elif key == "prefix":
                if not isinstance(value, str):
                    raise ConfigurationError('The "prefix" option must be a string', option=key)
                parsed[key] = value
            elif key in BOOLEAN_OPTIONS:
                parsed[key] = bool(value)
            elif key.startswith("_"):
                continue
            else:
                raise ConfigurationError(f'Unhandled option "{key}"', option=key)

        self._options = ValidatorOptions(**parsed)
        self._specs = specs

    @property
    def options(self) -> ValidatorOptions:
        return self._options

    @property
    def specs(self) -> SpecCollection | None:
        return self._specs

    @property
    def allow_extra(self) -> bool:
        return self._options.allow_extra

    @property
    def remove_extra(self) -> bool:
        return self._options.remove_extra

    @property
    def trim(self) -> bool:
        return self._options.trim

    @property
    def null_empty_strings(self) -> bool:
        return self._options.null_empty_strings

    @property
    def delete_null(self) -> bool:
        return self._options.delete_null

    @property
    def prefix(self) -> str:
        return self._options.prefix

    def validate(self, record: Mapping[SpecKey, Any] | None) -> dict[SpecKey, Any]:
        """Validate a mapping record and return the validated copy.

        Args:
            record: Mapping of field name to value; None is treated as empty

        Returns:
            New dict with defaults applied and hook mutations in place

        Raises:
            UnknownKeyError: If a key has no spec and extra keys are not allowed
            NamedValidationCheckError: If a field fails validation
        """
        if record is None:
            record = {}
        if not isinstance(record, Mapping):
            raise TypeError(f"validate() requires a mapping, got {type(record).__name__}")

        args: dict[SpecKey, Any] = {key: _detach(value) for key, value in record.items()}
        specs = self._specs
        opts = self._options

        # Missing keys are added so that defaults and mandatory checks apply.
        if specs is not None:
            for key in specs:
                args.setdefault(key, None)

        args = self._normalize(args)

        if opts.delete_null:
            args = {
                key: value
                for key, value in args.items()
                if not (value is None or is_empty_string(value))
                or (specs is not None and key in specs and specs[key].has_default)
            }

        if specs is None:
            return args

        for key in list(args):
            if key in specs:
                continue
            if opts.remove_extra:
                del args[key]
            elif not opts.allow_extra:
                name = f"{opts.prefix}{key}"
                logger.debug(f"Rejecting unknown key {name!r}")
                raise UnknownKeyError(f"Unknown key '{name}'", key=name)

        for key, spec in specs.items():
            result = spec.check(args.get(key))
            if not result.valid:
                self._raise_failure(key, result.failure, result.value)
            if key in args:
                args[key] = result.value

        return args

    def validate_pos(self, record: Sequence[Any] | None) -> list[Any]:
        """Validate a positional record and return the validated copy.

        Specs are applied by position; string keys in the collection are
        ignored. Missing trailing values are checked as None, and appended to
        the result only when their spec supplies a default.

        Args:
            record: Sequence of values; None is treated as empty

        Returns:
            New list of validated values

        Raises:
            UnknownKeyError: If there are more values than specs and extra
                values are neither allowed nor removed
            NamedValidationCheckError: If a value fails validation; the name is
                the (prefixed) index
        """
        if record is None:
            record = []
        if isinstance(record, (str, bytes, Mapping)) or not isinstance(record, Sequence):
            raise TypeError(f"validate_pos() requires a sequence, got {type(record).__name__}")

        args = [_detach(value) for value in record]
        specs = self._specs.positional() if self._specs is not None else None
        opts = self._options

        if specs is not None and len(args) > len(specs):
            if not (opts.allow_extra or opts.remove_extra):
                name = f"{opts.prefix}{len(specs)}"
                logger.debug(f"Rejecting extra positional value at {name!r}")
                raise UnknownKeyError(
                    f"Too many values given ({len(args)}) for the number of specs ({len(specs)})",
                    key=name,
                )
            if opts.remove_extra:
                del args[len(specs):]

        args = self._normalize(dict(enumerate(args)))
        values = [args[i] for i in range(len(args))]

        if specs is not None:
            for index, spec in enumerate(specs):
                present = index < len(values)
                result = spec.check(values[index] if present else None)
                if not result.valid:
                    self._raise_failure(index, result.failure, result.value)
                if present:
                    values[index] = result.value
                elif result.value is not None:
                    values.extend([None] * (index - len(values)))
                    values.append(result.value)

        return values

    def is_valid(self, record: Mapping[SpecKey, Any]) -> bool:
        """Return True if the mapping record passes validation."""
        try:
            self.validate(record)
        except (ValidationCheckError, UnknownKeyError):
            return False
        return True

    def validate_many(self, records: Iterable[Mapping[SpecKey, Any]]) -> list[dict[SpecKey, Any]]:
        """Validate several mapping records, stopping at the first failure.

        Args:
            records: Iterable of mapping records

        Returns:
            List of validated records, in input order
        """
        return [self.validate(record) for record in records]

    def _normalize(self, args: dict[Any, Any]) -> dict[Any, Any]:
        if self._options.trim:
            args = {key: trim_string(value) for key, value in args.items()}
        if self._options.null_empty_strings:
            args = {key: None if is_empty_string(value) else value for key, value in args.items()}
        return args

    def _raise_failure(self, key: SpecKey, failure: str | None, value: Any) -> None:
        name = f"{self._options.prefix}{key}"
        logger.debug(f"Field {name!r} failed validation {failure!r}")
        raise NamedValidationCheckError(name, failure or "validation", value)

    def to_dict(self) -> dict[str, Any]:
        """Return the validator options, with specs as a key to spec mapping."""
        result = asdict(self._options)
        if self._specs is not None:
            result["specs"] = self._specs.to_dict()
        return result

    def __repr__(self) -> str:
        keys = self._specs.key_list() if self._specs is not None else None
        return f"RecordValidator(options={self._options!r}, specs={keys!r})"
