"""Billing errors raised by the service layer and rendered by the API"""

from typing import Optional

from fastapi import status


class FeeError(Exception):
    """Base error: carries a machine-readable code and the HTTP status to answer with"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "FEE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationFailed(FeeError):
    """A business rule rejected the request before anything was written"""

    status_code = status.HTTP_400_BAD_REQUEST

    # Reason codes, one per violated rule
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    OVERPAYMENT = "overpayment"
    NEGATIVE_VALUE = "negative_value"
    PER_DAY_EXCEEDS_CAP = "per_day_exceeds_cap"
    INVALID_DISCOUNT = "invalid_discount"
    INVALID_PERIOD = "invalid_period"
    INVALID_DUE_DAY = "invalid_due_day"

    def __init__(self, message: str, reason: str):
        super().__init__(message, code=reason)
        self.reason = reason


class NotFound(FeeError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "RESOURCE_NOT_FOUND"


class Conflict(FeeError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class PaymentInconsistency(FeeError):
    """Storage failed midway through recording a payment; nothing was kept"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PAYMENT_INCONSISTENCY"
