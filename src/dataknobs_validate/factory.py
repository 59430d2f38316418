"""Factory classes for building validators from configuration.

The factories plug into ``dataknobs_config.Config``, so validators can be
declared next to the rest of an application's configuration:

    ```yaml
    validators:
      - name: signup
        factory: dataknobs_validate.factory.RecordValidatorFactory
        remove_extra: true
        trim: true
        specs:
          username:
            types: [string]
            min_length_chars: 3
            max_length_chars: 20
            regex: "^[a-z0-9_]+$"
            before: str.lower
          age:
            types: [int]
            min_value: 13
            optional: true
    ```

    ```python
    config = Config("app.yaml")
    validator = config.get_instance("validators", "signup")
    ```

Callable options (``callback``, ``callbacks`` values, ``before``, ``after``,
``default_factory``) may be given as dotted import paths and are resolved when
the object is built. Note that ``Config`` reserves the ``type`` and ``name``
keys of each entry; use ``types`` for the rule set type list at the top level
of a RuleSet or FieldSpec entry.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Mapping
from typing import Any

from dataknobs_config import FactoryBase

from .collection import SpecCollection
from .exceptions import ConfigurationError
from .rules import RuleSet
from .spec import FieldSpec
from .validator import RecordValidator

logger = logging.getLogger(__name__)

RULE_CALLABLE_OPTIONS = ("callback",)
SPEC_CALLABLE_OPTIONS = ("before", "after", "default_factory")


def load_callable(path: str) -> Callable[..., Any]:
    """Import a callable from a dotted path.

    The longest importable module prefix is imported and the remaining parts
    are looked up as attributes, so both ``"package.module.func"`` and
    ``"str.lower"`` work.

    Args:
        path: Dotted import path

    Returns:
        The callable

    Raises:
        ConfigurationError: If the path cannot be resolved to a callable
    """
    parts = path.split(".")
    candidates = [(".".join(parts[:i]), parts[i:]) for i in range(len(parts) - 1, 0, -1)]
    # Bare builtins such as "str.lower" or "len"
    candidates.append(("builtins", parts))

    for module_name, attrs in candidates:
        try:
            obj: Any = importlib.import_module(module_name)
        except ImportError:
            continue
        try:
            for attr in attrs:
                obj = getattr(obj, attr)
        except AttributeError:
            continue
        if not callable(obj):
            raise ConfigurationError(f"Object at {path!r} is not callable", context={"path": path})
        return obj

    raise ConfigurationError(f"Cannot import callable {path!r}", context={"path": path})


def _resolve(value: Any) -> Any:
    return load_callable(value) if isinstance(value, str) else value


def resolve_rule_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve dotted-path callables in a mapping of rule options."""
    resolved = dict(config)
    for key in RULE_CALLABLE_OPTIONS:
        if key in resolved:
            resolved[key] = _resolve(resolved[key])
    if isinstance(resolved.get("callbacks"), Mapping):
        resolved["callbacks"] = {name: _resolve(cb) for name, cb in resolved["callbacks"].items()}
    return resolved


def resolve_spec_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve dotted-path callables in a mapping of spec (and rule) options."""
    resolved = resolve_rule_config(config)
    for key in SPEC_CALLABLE_OPTIONS:
        if key in resolved:
            resolved[key] = _resolve(resolved[key])
    if isinstance(resolved.get("validation"), Mapping):
        resolved["validation"] = resolve_rule_config(resolved["validation"])
    return resolved


class RuleSetFactory(FactoryBase):
    """Factory for creating RuleSets from configuration.

    Configuration Options:
        Any RuleSet option (types, allowed_values, max_length, regex, ...).
        ``callback`` and the values of ``callbacks`` may be dotted paths.
    """

    def create(self, **config: Any) -> RuleSet:
        """Create a RuleSet instance from configuration.

        Args:
            **config: Rule options

        Returns:
            RuleSet instance
        """
        return RuleSet(resolve_rule_config(config))


class FieldSpecFactory(FactoryBase):
    """Factory for creating FieldSpecs from configuration.

    Configuration Options:
        optional (bool): Whether null is acceptable (default: False)
        allow_empty (bool): Keep empty strings instead of nulling them
        trim (bool): Strip surrounding whitespace from strings
        default (any): Value substituted for null
        default_factory (str | callable): Called to produce the default
        before (str | callable): Hook run before the rules
        after (str | callable): Hook run after the rules
        description (str): Free-form description
        validation (dict): Rule options; alternatively give them inline
    """

    def create(self, **config: Any) -> FieldSpec:
        """Create a FieldSpec instance from configuration.

        Args:
            **config: Spec options

        Returns:
            FieldSpec instance
        """
        return FieldSpec(resolve_spec_config(config))


class RecordValidatorFactory(FactoryBase):
    """Factory for creating RecordValidators from configuration.

    Configuration Options:
        allow_extra (bool): Keep keys without a spec (default: False)
        remove_extra (bool): Drop keys without a spec (default: False)
        trim (bool): Trim all string values
        null_empty_strings (bool): Replace empty strings with null
        delete_null (bool): Drop null-valued keys without a default
        prefix (str): Prefix for key names in error messages
        specs (dict | list): Field name (or position) to spec options, or a
            boolean shorthand (true: mandatory, false: optional)
    """

    def create(self, **config: Any) -> RecordValidator:
        """Create a RecordValidator instance from configuration.

        Args:
            **config: Validator options

        Returns:
            RecordValidator instance
        """
        config.pop("name", None)
        specs = config.get("specs")
        if isinstance(specs, Mapping):
            config["specs"] = SpecCollection({key: self._resolve_entry(value) for key, value in specs.items()})
        elif isinstance(specs, (list, tuple)):
            config["specs"] = SpecCollection([self._resolve_entry(value) for value in specs])

        validator = RecordValidator(config)
        logger.info(f"Created record validator with {len(validator.specs or ())} specs")
        return validator

    @staticmethod
    def _resolve_entry(value: Any) -> Any:
        if isinstance(value, Mapping):
            return resolve_spec_config(value)
        return value


rule_set_factory = RuleSetFactory()
field_spec_factory = FieldSpecFactory()
validator_factory = RecordValidatorFactory()
