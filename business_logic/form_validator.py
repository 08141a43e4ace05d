"""
Validation for user-entered forms.

Checks the budget wizard inputs, password changes and campaign entries
before submission and reports inline, per-field issues.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when submitted form data is rejected."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class ValidationIssue:
    """A problem found in one form field."""
    severity: ValidationSeverity
    message: str
    field: Optional[str] = None


@dataclass
class ValidationResult:
    """Outcome of validating a form."""
    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def field_errors(self) -> Dict[str, str]:
        """First error message per field, for inline display."""
        messages: Dict[str, str] = {}
        for issue in self.errors:
            if issue.field and issue.field not in messages:
                messages[issue.field] = issue.message
        return messages

    def raise_if_invalid(self):
        """Raise ValidationError carrying the first error."""
        if not self.is_valid:
            first = self.errors[0]
            raise ValidationError(first.message, field=first.field)


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        return None


class FormValidator:
    """
    Validates form input for the budget wizard, password changes and
    campaign entry.
    """

    def __init__(self):
        """Initialize the form validator."""
        self.min_budget = Decimal("1")
        self.max_budget = Decimal("1000000")
        self.min_target_roi = Decimal("1")
        self.max_target_roi = Decimal("1000")
        self.min_password_length = 8
        self.max_password_length = 100

    def validate_budget_form(self, total_budget: Any, target_roi: Any) -> ValidationResult:
        """
        Validate the Smart Budget Wizard's first step.

        Args:
            total_budget: Budget entered by the user
            target_roi: Target ROI percentage

        Returns:
            ValidationResult with issues on ``total_budget`` and ``target_roi``
        """
        issues = []

        budget = _to_decimal(total_budget)
        if budget is None:
            issues.append(self._error("Please enter a budget", 'total_budget'))
        elif budget < self.min_budget:
            issues.append(self._error("Budget must be at least $1", 'total_budget'))
        elif budget > self.max_budget:
            issues.append(self._error("Budget cannot exceed $1,000,000", 'total_budget'))

        roi = _to_decimal(target_roi)
        if roi is None:
            issues.append(self._error("Please enter a target ROI", 'target_roi'))
        elif roi < self.min_target_roi:
            issues.append(self._error("Target ROI must be at least 1%", 'target_roi'))
        elif roi > self.max_target_roi:
            issues.append(self._error("Target ROI cannot exceed 1000%", 'target_roi'))
        elif roi > 300:
            issues.append(ValidationIssue(
                severity=ValidationSeverity.WARNING,
                message="Target ROI above 300% is rarely achieved",
                field='target_roi'
            ))

        return self._result(issues)

    def validate_password_change(self, password: str, confirm_password: str) -> ValidationResult:
        """Check password length and that the confirmation matches."""
        issues = []
        password = password or ""

        if len(password) < self.min_password_length:
            issues.append(self._error(
                f"Password must be at least {self.min_password_length} characters long", 'password'
            ))
        elif len(password) > self.max_password_length:
            issues.append(self._error("Password is too long", 'password'))

        if password != (confirm_password or ""):
            issues.append(self._error("Passwords do not match", 'confirm_password'))

        return self._result(issues)

    def validate_campaign_form(self, form: Dict[str, Any]) -> ValidationResult:
        """
        Validate a campaign entry.

        Args:
            form: Field values keyed by ``name``, ``ad_method_id``,
                ``amount_spent``, ``amount_earned``, ``start_date``, ``end_date``

        Returns:
            ValidationResult
        """
        issues = []

        if not str(form.get('name') or "").strip():
            issues.append(self._error("Please enter a campaign name", 'name'))

        if form.get('ad_method_id') in (None, ""):
            issues.append(self._error("Please select an ad method", 'ad_method_id'))

        spent_raw = form.get('amount_spent')
        spent = _to_decimal(spent_raw)
        if spent_raw in (None, ""):
            issues.append(self._error("Please enter amount spent", 'amount_spent'))
        elif spent is None or spent < 0:
            issues.append(self._error("Amount spent must be a positive number", 'amount_spent'))

        earned_raw = form.get('amount_earned')
        if earned_raw not in (None, ""):
            earned = _to_decimal(earned_raw)
            if earned is None or earned < 0:
                issues.append(self._error("Amount earned must be a positive number", 'amount_earned'))

        start_date = form.get('start_date')
        end_date = form.get('end_date')
        if not start_date:
            issues.append(self._error("Please enter start date", 'start_date'))
        elif end_date:
            if not isinstance(start_date, date) or not isinstance(end_date, date):
                issues.append(self._error("Dates must be valid calendar dates", 'end_date'))
            elif end_date < start_date:
                issues.append(self._error("End date must be after start date", 'end_date'))

        return self._result(issues)

    def _error(self, message: str, field_name: str) -> ValidationIssue:
        return ValidationIssue(severity=ValidationSeverity.ERROR, message=message, field=field_name)

    def _result(self, issues: List[ValidationIssue]) -> ValidationResult:
        is_valid = not any(issue.severity == ValidationSeverity.ERROR for issue in issues)
        if not is_valid:
            logger.info(f"Form validation failed with {len(issues)} issue(s)")
        return ValidationResult(is_valid=is_valid, issues=issues)


# Global form validator instance
form_validator = FormValidator()
