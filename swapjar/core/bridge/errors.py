"""
Bridge error taxonomy.

Validation errors are reported to the caller and never retried. Ledger
unavailability and submission rejections are absorbed into a simulated
payout on the initiation path and reported as failures on status queries.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class ErrorCategory(str, Enum):
    """Categories used when reporting bridge failures."""

    VALIDATION = "validation"                  # Bad or missing caller input
    LEDGER_UNAVAILABLE = "ledger_unavailable"  # Horizon unreachable or account missing
    SUBMISSION = "submission"                  # Transaction rejected by the network


class BridgeError(Exception):
    """Base class for payout orchestration errors."""

    category: ErrorCategory

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "category": self.category.value, **self.details}


class ValidationError(BridgeError):
    """Caller input is missing or malformed."""

    category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str = "Invalid payout request",
        missing_fields: Iterable[str] = (),
        invalid_fields: Optional[Dict[str, str]] = None,
    ):
        self.missing_fields: List[str] = list(missing_fields)
        self.invalid_fields: Dict[str, str] = dict(invalid_fields or {})
        super().__init__(
            message,
            details={
                "missingFields": self.missing_fields,
                "invalidFields": self.invalid_fields,
            },
        )


class LedgerUnavailableError(BridgeError):
    """Destination ledger could not be reached, or the account does not exist."""

    category = ErrorCategory.LEDGER_UNAVAILABLE

    def __init__(
        self,
        message: str = "Stellar network unavailable",
        account_id: Optional[str] = None,
        account_missing: bool = False,
    ):
        self.account_id = account_id
        self.account_missing = account_missing
        details: Dict[str, Any] = {"accountMissing": account_missing}
        if account_id:
            details["account"] = account_id
        super().__init__(message, details=details)


class SubmissionError(BridgeError):
    """A signed transaction was rejected or timed out on submission."""

    category = ErrorCategory.SUBMISSION

    def __init__(
        self,
        message: str = "Transaction submission failed",
        result_codes: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.result_codes = result_codes or {}
        self.status_code = status_code
        details: Dict[str, Any] = {}
        if self.result_codes:
            details["resultCodes"] = self.result_codes
        if status_code is not None:
            details["statusCode"] = status_code
        super().__init__(message, details=details)

    @property
    def reason(self) -> str:
        """Most specific rejection reason Horizon gave us."""
        operations = self.result_codes.get("operations") or []
        if operations:
            return ", ".join(str(code) for code in operations)
        return str(self.result_codes.get("transaction") or self.message)
