from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)

MONEY_QUANT = Decimal("0.01")
WEIGHT_QUANT = Decimal("0.001")

# Upper bound on any single money field (IDR); keeps Numeric(18, 2) well clear of overflow
MAX_AMOUNT = Decimal("999999999999.99")


class ServiceError(Exception):
    """
    Base for errors the core raises on purpose.

    Every error carries a stable machine-readable `kind` and the HTTP status
    the API layer maps it to.
    """
    kind = "error"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError, ValueError):
    """400-level input problem."""
    kind = "validation"
    status_code = 400


class NotFoundError(ServiceError, LookupError):
    """Referenced entity does not exist or is soft-deleted."""
    kind = "not_found"
    status_code = 404


class ConflictError(ServiceError):
    """409-level business rule conflict (entity in the wrong state)."""
    kind = "conflict"
    status_code = 409


class PersistenceError(ServiceError):
    """Storage failure inside a unit of work; the unit was rolled back."""
    kind = "persistence"
    status_code = 500


def require_fields(payload: Any, fields: Iterable[str]) -> dict:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    missing = [f for f in fields if payload.get(f) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return payload


def coerce_int(value: Any, field: str, *, required: bool = True, minimum: int | None = None) -> Optional[int]:
    """Strict integer coercion: rejects floats, bools and scientific notation."""
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return result


def coerce_decimal(
    value: Any,
    field: str,
    *,
    required: bool = True,
    default: Decimal | None = None,
    minimum: Decimal | None = None,
    maximum: Decimal | None = None,
    exclusive_minimum: bool = False,
) -> Optional[Decimal]:
    """
    Parse a JSON number (or numeric string) into a Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required and default is None:
            raise ValidationError(f"{field} is required")
        return default

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")

    if minimum is not None:
        if exclusive_minimum and result <= minimum:
            raise ValidationError(f"{field} must be > {minimum}")
        if not exclusive_minimum and result < minimum:
            raise ValidationError(f"{field} must be >= {minimum}")
    if maximum is not None and result > maximum:
        raise ValidationError(f"{field} must be <= {maximum}")
    if abs(result) > MAX_AMOUNT:
        raise ValidationError(f"{field} is out of range")
    return result


def coerce_str(value: Any, field: str, *, max_length: int | None = None, required: bool = False) -> Optional[str]:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    result = str(value).strip()
    if required and not result:
        raise ValidationError(f"{field} cannot be blank")
    if max_length is not None and len(result) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return result


def coerce_bool(value: Any, field: str, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "1", "yes"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "0", "no", ""}:
        return False
    raise ValidationError(f"{field} must be a boolean")


def parse_enum(enum_cls: Type[E], value: Any, field: str, *, default: E | None = None) -> E:
    """Map a raw request value onto a closed enum; unknown values are rejected."""
    if value is None or value == "":
        if default is not None:
            return default
        raise ValidationError(f"{field} is required")
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def quantize_weight(value: Decimal) -> Decimal:
    return value.quantize(WEIGHT_QUANT, rounding=ROUND_HALF_UP)


def to_number(value: Optional[Decimal]) -> Optional[float]:
    """JSON rendering for Numeric columns."""
    if value is None:
        return None
    return float(value)
