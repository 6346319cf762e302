"""
Custom exception classes for the donor finder service.

Ingestion failures and invalid help requests never surface through these;
they are absorbed at the API client and the request tracker. These cover
configuration-level and input validation errors.
"""

from typing import Any, Dict, Optional


class DonorFinderException(Exception):
    """
    Base exception for all donor finder errors.

    All custom exceptions inherit from this class
    for consistent error handling.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize donor finder exception.

        Args:
            message: Human-readable error message
            details: Additional context about the error
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(DonorFinderException):
    """
    Exception raised when input validation fails.

    Used for blood group strings outside the fixed enumeration.
    """

    def __init__(
        self,
        field_name: str,
        value: Any,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize validation exception.

        Args:
            field_name: Name of the field that failed validation
            value: The invalid value
            reason: Explanation of why validation failed
            details: Additional context about the error
        """
        self.field_name = field_name
        self.value = value
        self.reason = reason
        message = f"Validation failed for '{field_name}': {reason}"
        super().__init__(message, details)


class SessionNotFoundException(DonorFinderException):
    """Raised when a visitor session id is not held by the session store."""

    def __init__(
        self,
        session_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' not found", details)
