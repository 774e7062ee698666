"""Input Validation Utilities.

Reusable validators for the ledger and order domain: required
fields, identifiers, money amounts, quantities, symbols and
closed enumerations.
"""

import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from src.api_errors.config import ErrorCode
from src.api_errors.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

# Ticker symbols: letters/digits with an optional class or exchange suffix (BRK.B, ^GSPC, BTC-USD)
SYMBOL_PATTERN = re.compile(r"^\^?[A-Z0-9]{1,10}([.\-][A-Z0-9]{1,5})?$")

MAX_AMOUNT = Decimal("1000000000")

# Decimal places stored by the MONEY and UNITS columns.
MONEY_PLACES = 4
UNIT_PLACES = 6


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(values: Dict[str, Any], message: Optional[str] = None) -> None:
    """Raise when any of the named values is missing or blank.

    Args:
        values: Mapping of field name to the received value.
        message: Override for the error message.

    Raises:
        ValidationError: Listing every missing field.
    """
    missing = [name for name, value in values.items() if _is_missing(value)]
    if not missing:
        return

    if message is None:
        names = list(values)
        if len(names) == 1:
            message = f"{names[0]} is required"
        elif len(names) == 2:
            message = f"{names[0]} and {names[1]} are required"
        else:
            message = f"{', '.join(names[:-1])}, and {names[-1]} are required"

    raise ValidationError(
        message=message,
        error_code=ErrorCode.MISSING_REQUIRED_FIELD,
        details=[{"field": name, "issue": "required"} for name in missing],
    )


def parse_id(value: Any, field: str) -> int:
    """Parse a positive integer identifier from a JSON or query value."""
    if isinstance(value, bool):
        value = None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(message=f"Invalid {field}", field=field)
    if parsed <= 0:
        raise ValidationError(message=f"Invalid {field}", field=field)
    return parsed


def _to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def _fits_scale(value: Decimal, places: int) -> bool:
    return value.normalize().as_tuple().exponent >= -places


def validate_amount(value: Any, field: str = "amount") -> Decimal:
    """Validate a positive money amount.

    Accepts numbers and numeric strings.

    Raises:
        ValidationError: If the amount is not a positive number.
    """
    amount = _to_decimal(value)
    if amount is None or amount <= 0:
        raise ValidationError(
            message="Amount must be a positive number",
            error_code=ErrorCode.INVALID_AMOUNT,
            field=field,
        )
    if amount > MAX_AMOUNT:
        raise ValidationError(
            message=f"Amount exceeds maximum of {MAX_AMOUNT:,}",
            error_code=ErrorCode.INVALID_AMOUNT,
            field=field,
        )
    if not _fits_scale(amount, MONEY_PLACES):
        raise ValidationError(
            message=f"Amount cannot have more than {MONEY_PLACES} decimal places",
            error_code=ErrorCode.INVALID_AMOUNT,
            field=field,
        )
    return amount


def validate_quantity(value: Any, field: str = "qty", message: Optional[str] = None) -> Decimal:
    """Validate a positive order quantity (fractional units allowed)."""
    qty = _to_decimal(value)
    if qty is None or qty <= 0:
        raise ValidationError(
            message=message or "Quantity must be greater than 0",
            error_code=ErrorCode.INVALID_QUANTITY,
            field=field,
        )
    if not _fits_scale(qty, UNIT_PLACES):
        raise ValidationError(
            message=f"Quantity cannot have more than {UNIT_PLACES} decimal places",
            error_code=ErrorCode.INVALID_QUANTITY,
            field=field,
        )
    return qty


def validate_price(value: Any, field: str = "price", message: Optional[str] = None) -> Decimal:
    """Validate a positive unit price."""
    price = _to_decimal(value)
    if price is None or price <= 0:
        raise ValidationError(
            message=message or "Price must be greater than 0",
            error_code=ErrorCode.INVALID_AMOUNT,
            field=field,
        )
    if not _fits_scale(price, MONEY_PLACES):
        raise ValidationError(
            message=f"Price cannot have more than {MONEY_PLACES} decimal places",
            error_code=ErrorCode.INVALID_AMOUNT,
            field=field,
        )
    return price


def validate_symbol(symbol: Any) -> str:
    """Validate and normalize a ticker symbol.

    Returns:
        The validated, uppercased symbol.
    """
    if _is_missing(symbol) or not isinstance(symbol, str):
        raise ValidationError(
            message="Symbol is required",
            error_code=ErrorCode.INVALID_SYMBOL,
            field="symbol",
        )

    symbol = symbol.strip().upper()
    if not SYMBOL_PATTERN.match(symbol):
        raise ValidationError(
            message=f"Invalid symbol format: '{symbol}'",
            error_code=ErrorCode.INVALID_SYMBOL,
            field="symbol",
        )
    return symbol


def parse_choice(
    value: Any,
    enum_cls: Type[E],
    field: str,
    error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    message: Optional[str] = None,
    case_insensitive: bool = False,
) -> E:
    """Parse a raw string into a member of a closed enum by its value."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip()
        for member in enum_cls:
            if wanted == member.value:
                return member
            if case_insensitive and wanted.lower() == member.value.lower():
                return member

    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(
        message=message or f"{field} must be one of: {allowed}",
        error_code=error_code,
        field=field,
    )


def format_money(value: Decimal) -> str:
    """Render an amount with thousands separators and no trailing zeros.

    ``Decimal("100.0000")`` renders as ``100`` and ``Decimal("1234.5")``
    as ``1,234.5``; at most three fraction digits are kept.
    """
    quantized = Decimal(value).quantize(Decimal("0.001")).normalize()
    if quantized == quantized.to_integral():
        quantized = quantized.quantize(Decimal("1"))
    return f"{quantized:,f}"
