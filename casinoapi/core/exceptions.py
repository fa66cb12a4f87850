from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class BaseAPIException(HTTPException):
    """Base exception for API errors"""
    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details
                }
            }
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message


class AuthenticationError(BaseAPIException):
    """No resolved user identity"""
    def __init__(self, message: str = "You need to be logged in to manage tokens.", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details
        )


class ValidationError(BaseAPIException):
    """Validation errors"""
    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
            message=message,
            details=details
        )


class InvalidAmountError(BaseAPIException):
    """Amount is non-positive, non-integral or non-numeric"""
    def __init__(self, message: str = "Amount must be a positive whole number of tokens.", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="LEDGER_001",
            message=message,
            details=details
        )


class InsufficientFundsError(BaseAPIException):
    """Debit exceeds the current balance"""
    def __init__(self, message: str = "Insufficient 401k tokens for that bet.", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="LEDGER_002",
            message=message,
            details=details
        )


class PersistenceError(BaseAPIException):
    """Store unreachable or rejected a write after retries"""
    def __init__(self, message: str = "Ledger is temporarily unavailable. Try again later.", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="LEDGER_003",
            message=message,
            details=details
        )


class RNGError(BaseAPIException):
    """Randomness source unavailable"""
    def __init__(self, message: str = "Randomness source unavailable", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="RNG_001",
            message=message,
            details=details
        )


class RoundStateError(BaseAPIException):
    """Action not allowed in the round's current stage"""
    def __init__(self, message: str = "Action not allowed right now", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="ROUND_001",
            message=message,
            details=details
        )


class NotFoundError(BaseAPIException):
    """Resource not found errors"""
    def __init__(self, message: str = "Resource not found", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND_001",
            message=message,
            details=details
        )


class InternalServerError(BaseAPIException):
    """Internal server errors"""
    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details
        )
