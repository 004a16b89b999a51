"""
Shared money parsing utilities for Romanian receipts.

Handles the number formats printed by Romanian cash registers and invoices:
- 1.234,56 or 1 234,56 (dot/space thousands, comma decimal)
- 150.00 (decimal dot, some cash registers)
- 1234 (missing decimals)
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union
import re


CENT = Decimal('0.01')

# A single receipt above one million lei is an OCR artifact
MAX_RECEIPT_AMOUNT = Decimal('1000000')

CURRENCY_PATTERN = re.compile(r'[$£€¥]\s*|[A-Z]{3}\.?\s*', re.IGNORECASE)


def parse_money(amount_str: str) -> Optional[Decimal]:
    """
    Parse a Romanian-formatted amount.

    Args:
        amount_str: String containing amount (e.g., "1.234,56 LEI", "150,00")

    Returns:
        Decimal amount or None if parsing fails; negative amounts are rejected

    Examples:
        >>> parse_money("1.234,56")
        Decimal('1234.56')
        >>> parse_money("1 234,56 RON")
        Decimal('1234.56')
        >>> parse_money("150.00")
        Decimal('150.00')
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    # Strip currency symbols and codes: LEI, RON, EUR, €, ...
    cleaned = CURRENCY_PATTERN.sub('', amount_str).replace(' ', '').strip()
    if not cleaned:
        return None

    if ',' not in cleaned and re.fullmatch(r'\d+\.\d{2}', cleaned):
        result = Decimal(cleaned)
    else:
        # Dots are thousands separators, the comma is the decimal mark
        cleaned = cleaned.replace('.', '').replace(',', '.')
        if not re.fullmatch(r'\d+(?:\.\d+)?', cleaned):
            return None
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            return None

    if result > MAX_RECEIPT_AMOUNT:
        return None

    return result


def to_decimal(value: Union[Decimal, int, float, str, None]) -> Optional[Decimal]:
    """Coerce a numeric value to Decimal without float artifacts."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def round_money(amount: Decimal) -> Decimal:
    """Round to currency minor units (bani) using half-up rounding."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
