"""DataKnobs Validate package.

Field specifications and record validators for checking, normalizing and
coercing input values:

- **RuleSet**: named checks (types, allowed values, lengths, ranges, regex,
  callbacks) over a single value
- **FieldSpec**: a RuleSet plus null, default, trim and before/after hooks
- **SpecCollection**: immutable ordered mapping of field key to FieldSpec
- **RecordValidator**: applies a SpecCollection to mapping or positional
  records, with extra-key and empty/null policies

Example:
    ```python
    from dataknobs_validate import RecordValidator

    validator = RecordValidator(
        trim=True,
        specs={
            "email": {"type": "string", "regex": r"^[^@\\s]+@[^@\\s]+$"},
            "newsletter": {"type": "bool", "default": False},
        },
    )
    validator.validate({"email": " jane@example.com "})
    # {'email': 'jane@example.com', 'newsletter': False}
    ```
"""

from dataknobs_validate.collection import SpecCollection, boolean_spec
from dataknobs_validate.exceptions import (
    ConfigurationError,
    ImmutableCollectionError,
    NamedValidationCheckError,
    UnknownKeyError,
    ValidateError,
    ValidationCheckError,
)
from dataknobs_validate.factory import (
    FieldSpecFactory,
    RecordValidatorFactory,
    RuleSetFactory,
    field_spec_factory,
    rule_set_factory,
    validator_factory,
)
from dataknobs_validate.hooks import Replace
from dataknobs_validate.result import ValidationResult
from dataknobs_validate.rules import RuleOptions, RuleSet
from dataknobs_validate.spec import FieldSpec
from dataknobs_validate.validator import RecordValidator, ValidatorOptions

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "RuleSet",
    "RuleOptions",
    "FieldSpec",
    "SpecCollection",
    "RecordValidator",
    "ValidatorOptions",
    "ValidationResult",
    "Replace",
    "boolean_spec",
    # Exceptions
    "ValidateError",
    "ConfigurationError",
    "ValidationCheckError",
    "NamedValidationCheckError",
    "UnknownKeyError",
    "ImmutableCollectionError",
    # Factories
    "RuleSetFactory",
    "FieldSpecFactory",
    "RecordValidatorFactory",
    "rule_set_factory",
    "field_spec_factory",
    "validator_factory",
]
