# shopcore/api/errors.py
from fastapi import HTTPException

from shopcore.domain import errors

#kolejnosc ma znaczenie - pierwsze dopasowanie wygrywa
_STATUS_CODES = (
    (errors.NotFound, 404),
    (errors.InvalidTransition, 409),
    (errors.SignatureMismatch, 400),
    (errors.OrderNumberExhausted, 503),
    (errors.ConcurrencyConflict, 409),
    (errors.ConstraintViolation, 409),
    (errors.InternalError, 500),
    (PermissionError, 403),
    (ValueError, 400),
)


def to_http(exc: Exception) -> HTTPException:
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 500)
    message = getattr(exc, "message", None) or str(exc)
    return HTTPException(status_code=status_code, detail=message)
