"""Per-call validation results.

Every ``check()`` call returns its own ``ValidationResult`` instead of storing
the outcome on the shared rule set or spec, so checks are safe to run against
the same instance from several threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ValidationResult:
    """Outcome of validating a single value.

    Attributes:
        valid: Whether the value passed
        value: The final value (after trimming, defaulting and hook mutation)
        failure: Name of the failed check, None on success
        warnings: Non-fatal diagnostics collected during the check
    """

    valid: bool
    value: Any
    failure: str | None = None
    warnings: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check validity."""
        return self.valid

    def add_warning(self, warning: str) -> ValidationResult:
        """Add a warning without affecting validity (fluent API).

        Args:
            warning: Warning message to add

        Returns:
            Self for chaining
        """
        self.warnings.append(warning)
        return self

    @classmethod
    def success(cls, value: Any, warnings: list[str] | None = None) -> ValidationResult:
        """Create a successful validation result.

        Args:
            value: The validated value
            warnings: Optional list of warnings

        Returns:
            Successful ValidationResult
        """
        return cls(valid=True, value=value, failure=None, warnings=warnings or [])

    @classmethod
    def fail(cls, value: Any, failure: str, warnings: list[str] | None = None) -> ValidationResult:
        """Create a failed validation result.

        Args:
            value: The value that failed validation
            failure: Name of the check that failed
            warnings: Optional list of warnings

        Returns:
            Failed ValidationResult
        """
        return cls(valid=False, value=value, failure=failure, warnings=warnings or [])
