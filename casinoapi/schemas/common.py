from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ErrorCode(str, Enum):
    UNAUTHORIZED = "AUTH_001"
    VALIDATION_FAILED = "VALIDATION_001"
    INVALID_AMOUNT = "LEDGER_001"
    INSUFFICIENT_FUNDS = "LEDGER_002"
    PERSISTENCE_FAILURE = "LEDGER_003"
    RNG_FAILURE = "RNG_001"
    ROUND_STATE = "ROUND_001"
    NOT_FOUND = "NOT_FOUND_001"
    INTERNAL = "INTERNAL_001"
    HTTP_ERROR = "HTTP_ERROR"


class Error(BaseModel):
    code: ErrorCode
    message: str
    details: Optional[dict] = None


class BaseResponse(BaseModel):
    success: bool = True
    data: Optional[dict] = None
    error: Optional[Error] = None
    meta: Optional[dict] = None
