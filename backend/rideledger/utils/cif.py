"""
Romanian fiscal identifier (CIF/CUI) helpers.

The receipt parser and the ANAF company lookup share one canonical form:
country prefix "RO" followed by digits, e.g. "RO1234567".
"""

import re
from typing import Optional

COUNTRY_PREFIX = "RO"

MIN_CIF_DIGITS = 2
MAX_CIF_DIGITS = 10


def cif_digits(cif: str) -> str:
    """Return only the digits of a CIF ("RO 123 456 7" -> "1234567")."""
    if not cif:
        return ""
    return re.sub(r'[^0-9]', '', cif)


def normalize_cif(cif: str) -> str:
    """
    Normalize a CIF to the canonical "RO" + digits form.

    Empty input stays empty so that "not found" survives normalization.
    """
    digits = cif_digits(cif)
    if not digits:
        return ""
    return f"{COUNTRY_PREFIX}{digits}"


def is_valid_cif(cif: str) -> bool:
    """Check the CIF has between 2 and 10 digits once the prefix is removed."""
    if not cif:
        return False
    stripped = re.sub(r'^\s*RO', '', cif.strip(), flags=re.IGNORECASE)
    if re.search(r'[^0-9\s]', stripped):
        return False
    digits = cif_digits(stripped)
    return MIN_CIF_DIGITS <= len(digits) <= MAX_CIF_DIGITS


def cif_as_int(cif: str) -> Optional[int]:
    """CIF as the integer ANAF expects in its request body."""
    digits = cif_digits(cif)
    return int(digits) if digits else None
