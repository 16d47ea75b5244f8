"""
Pure journal entry validation.

No I/O.  JournalService resolves accounts against the database; everything
that can be decided from the caller's input alone lives here, so the same
checks run at draft creation, draft update and again at posting.

Checks stop at the first violation and raise its typed error.  Order:
line count, then each line's shape in line order, then the balance.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from gl_kernel.db.types import from_minor_units, to_minor_units
from gl_kernel.domain.dtos import LineSpec
from gl_kernel.exceptions import (
    InvalidAccountCodeError,
    InvalidAmountError,
    InvalidLineError,
    TooFewLinesError,
    UnbalancedEntryError,
)

MIN_LINES = 2

ACCOUNT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class ValidatedLine:
    """A line whose amounts have been converted to minor units."""

    line_order: int
    account_code: str
    debit_amount: int
    credit_amount: int
    memo: str | None = None


def validate_account_code(code: str, max_length: int) -> str:
    """Return the code unchanged if it is well formed."""
    if not isinstance(code, str) or not code:
        raise InvalidAccountCodeError(str(code), "code is required")
    if len(code) > max_length:
        raise InvalidAccountCodeError(code, f"longer than {max_length} characters")
    if not ACCOUNT_CODE_PATTERN.match(code):
        raise InvalidAccountCodeError(
            code, "only letters, digits, hyphen and underscore are allowed"
        )
    return code


def _line_amount(value, line_no: int, side: str, places: int) -> int:
    try:
        return to_minor_units(value, places)
    except InvalidAmountError as exc:
        raise InvalidLineError(line_no, f"{side} {exc.reason}") from exc


def validate_lines(lines: Sequence[LineSpec], places: int = 2) -> list[ValidatedLine]:
    """
    Check line count and the shape of every line.

    Returns the lines in caller order with amounts in minor units.  Does not
    check the balance; call ``check_balanced`` once accounts are resolved.

    Raises:
        TooFewLinesError: fewer than two lines.
        InvalidLineError: a line has no account code, an unusable amount,
            or not exactly one non-zero side.
    """
    if len(lines) < MIN_LINES:
        raise TooFewLinesError(len(lines))

    validated = []
    for index, spec in enumerate(lines):
        line_no = index + 1
        if not isinstance(spec, LineSpec):
            raise InvalidLineError(line_no, f"expected LineSpec, got {type(spec).__name__}")
        if not spec.account_code:
            raise InvalidLineError(line_no, "account code is required")

        debit = _line_amount(spec.debit_amount, line_no, "debit", places)
        credit = _line_amount(spec.credit_amount, line_no, "credit", places)

        if debit and credit:
            raise InvalidLineError(line_no, "line has both a debit and a credit")
        if not debit and not credit:
            raise InvalidLineError(line_no, "line has neither a debit nor a credit")

        validated.append(
            ValidatedLine(
                line_order=index,
                account_code=spec.account_code,
                debit_amount=debit,
                credit_amount=credit,
                memo=spec.memo,
            )
        )
    return validated


def check_balanced(debits: int, credits: int, places: int = 2) -> None:
    """Exact integer comparison of minor-unit totals.  No tolerance."""
    if debits != credits:
        raise UnbalancedEntryError(
            debits=str(from_minor_units(debits, places)),
            credits=str(from_minor_units(credits, places)),
        )


def check_lines_balanced(lines: Iterable[ValidatedLine], places: int = 2) -> None:
    lines = list(lines)
    check_balanced(
        sum(line.debit_amount for line in lines),
        sum(line.credit_amount for line in lines),
        places,
    )
