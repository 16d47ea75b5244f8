"""
Module: gl_kernel.db.types
Responsibility: Conversion between caller-facing decimal amounts and the
    integer minor units stored in every monetary column.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and reporting/.  MUST NOT import from those layers.

Invariants enforced:
    - No floats anywhere.  ``to_minor_units`` rejects ``float`` input outright.
    - Exactness.  An amount with more fractional digits than the ledger's
      minor unit is rejected, never rounded.  Rounding (e.g. percentage
      splits) is the caller's job via ``round_money`` BEFORE the entry is
      built, so the balance check always sees the final figures.

Failure modes:
    - InvalidAmountError on float, negative, non-numeric, non-finite, or
      over-precise input.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Union

from sqlalchemy import BigInteger

from gl_kernel.exceptions import InvalidAmountError

# Monetary amount in integer minor units (e.g. cents)
MinorUnits = Annotated[int, BigInteger]

AmountLike = Union[Decimal, int, str]

DEFAULT_ROUNDING = ROUND_HALF_UP


def to_minor_units(amount: AmountLike, places: int = 2) -> int:
    """
    Convert a major-unit amount to integer minor units, exactly.

    Args:
        amount: Decimal, int, or numeric string in major units ("100.00").
        places: Number of minor-unit decimal places for the ledger.

    Returns:
        Non-negative integer minor units (``Decimal("100.25")`` -> 10025).

    Raises:
        InvalidAmountError: float input, negative, non-finite, or more
            fractional digits than ``places``.
    """
    if isinstance(amount, bool) or isinstance(amount, float):
        raise InvalidAmountError(repr(amount), "floating point amounts are not accepted")

    try:
        value = amount if isinstance(amount, Decimal) else Decimal(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(repr(amount), "not a number") from None

    if not value.is_finite():
        raise InvalidAmountError(repr(amount), "not a finite number")
    if value < 0:
        raise InvalidAmountError(str(value), "amounts must be non-negative")

    scaled = value.scaleb(places)
    if scaled != scaled.to_integral_value():
        raise InvalidAmountError(
            str(value), f"more than {places} decimal places"
        )
    return int(scaled)


def from_minor_units(value: int, places: int = 2) -> Decimal:
    """
    Convert integer minor units back to a major-unit Decimal.

    Example:
        from_minor_units(1050, 2) -> Decimal("10.50")
    """
    return Decimal(value).scaleb(-places).quantize(Decimal(1).scaleb(-places))


def round_money(
    value: Decimal,
    places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the ledger's minor unit.

    This is the sanctioned rounding function for callers that derive line
    amounts arithmetically (allocations, percentage splits).  Round each line
    here, then build the entry; the balance check runs on the rounded lines.
    """
    return value.quantize(Decimal(1).scaleb(-places), rounding=rounding)
