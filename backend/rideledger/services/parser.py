"""
Receipt parser service for extracting structured data from Romanian OCR text.

Turns the raw text of a fiscal receipt (bon fiscal) or invoice into a
ParsedReceipt draft: supplier, CIF, document number, date, totals with VAT
breakdown, expense category and a confidence score. Parsing is pure: no
network, no clock, and it never raises on malformed input.
"""

import re
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any

from rideledger.models.document import ExpenseCategory, ParsedReceipt
from rideledger.services.categories import categorize, describe, fold_diacritics
from rideledger.services.vat import split_total, statutory_default_rate
from rideledger.utils.cif import normalize_cif
from rideledger.utils.money import parse_money, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    flags: int = re.IGNORECASE
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'compiled', re.compile(self.pattern, self.flags))


# Romanian number: 1.234,56 / 1 234,56 / 150,00 / 150.00 / 150
AMOUNT = r'(\d{1,3}(?:[ .]\d{3})+(?:,\d{1,2})?|\d+(?:[.,]\d{1,2})?)(?![\d.,]*\d)'

TAX_ID_LABEL = r'(?:C\.?\s?I\.?\s?F\.?|C\.?\s?U\.?\s?I\.?|cod\s+fiscal|C\.?\s?F\.?)'

LEGAL_FORM = r'(?:S\.?\s?R\.?\s?L\.?|S\.?\s?C\.?|P\.?\s?F\.?\s?A\.?|S\.?\s?A\.?)'

DOCUMENT_LABEL = r'(?:seria|document|doc|nr|bon)'

HEADER_WORDS = ['bon fiscal', 'chitanta', 'factura', 'receipt']

# Lines that start with a field label are never a supplier name
FIELD_LABEL_LINE = re.compile(
    r'^(?:sub\s*total|total|t\.?v\.?a|suma|de\s+plata|rest|numerar|card|'
    r'cif|c\.i\.f|cui|cod\s+fiscal|data|nr)\b',
    re.IGNORECASE,
)

DECORATIVE_CHARS = re.compile(r'[*\-=+_#~|]')

# Confidence weights, out of 100
CONFIDENCE_WEIGHTS = {
    'supplier_name': 25,
    'supplier_tax_id': 25,
    'document_number': 20,
    'total_amount': 20,
    'date': 10,
}

# Below this score the UI forces manual review
LOW_CONFIDENCE_THRESHOLD = 30


class ReceiptParser:
    """Service for parsing Romanian receipt text and extracting structured data."""

    def __init__(self, default_vat_rate: Optional[Decimal] = None):
        """
        Initialize parser with regex patterns.

        Args:
            default_vat_rate: Rate assumed when a total is found without a VAT
                line. Pass ``VatRateService.default_rate()`` so the parser and
                the resolver agree; defaults to the statutory standard rate.
        """
        self.default_vat_rate = to_decimal(default_vat_rate) if default_vat_rate is not None \
            else statutory_default_rate()
        self._init_patterns()

    def _init_patterns(self):
        """Initialize regex patterns for parsing."""

        self.tax_id_pattern = PatternSpec(
            name='tax_id_label',
            pattern=rf'(?<![A-Za-z]){TAX_ID_LABEL}(?![A-Za-z])[\s:.#-]*(?:RO)?[ \t]*(\d(?:[ \t]?\d){{1,12}})(?!\d|[.,/-]\d)',
            example='CIF: RO 123 456 7',
            notes='Label, optional RO prefix, 2-13 digits possibly spaced',
        )

        self.supplier_pattern = PatternSpec(
            name='legal_form_supplier',
            pattern=(
                rf'(?<![A-Za-z]){LEGAL_FORM}(?![A-Za-z])[ \t]+'
                rf'(?!(?i:{TAX_ID_LABEL})(?![A-Za-z]))'
                r"([A-ZĂÂÎȘȚŞŢ][A-Za-z0-9ĂÂÎȘȚŞŢăâîșțşţ&.'\- ]*?)"
                rf'(?=[ \t]+{LEGAL_FORM}(?![A-Za-z])'
                rf'|[ \t]*[,;]?[ \t]*(?i:{TAX_ID_LABEL})(?![A-Za-z])'
                r'|[ \t]*(?:\n|$))'
            ),
            example='SC PETROM SA CIF: RO1234567',
            notes='Legal form marker then an uppercase-led name run; case-sensitive markers',
            flags=0,
        )

        self.document_number_pattern = PatternSpec(
            name='document_number_label',
            pattern=(
                rf'(?<![A-Za-z]){DOCUMENT_LABEL}(?![A-Za-z])'
                rf'(?:\.?[ \t:#.]*(?:{DOCUMENT_LABEL}|fiscal)(?![A-Za-z]))*'
                r'\.?[ \t:#.]*([A-Z0-9\-/]*\d[A-Z0-9\-/]*)'
            ),
            example='Nr. bon: 0123',
            notes='Chained labels ("Nr bon fiscal") are skipped; the token must contain a digit',
        )

        self.date_patterns = [
            PatternSpec(
                name='day_first',
                pattern=r'(?<!\d)(\d{1,2})([./-])(\d{1,2})\2(\d{4}|\d{2})(?!\d)',
                example='12.08.2025',
                notes='Romanian order; 2-digit years are 20xx',
            ),
            PatternSpec(
                name='year_first',
                pattern=r'(?<!\d)(\d{4})([./-])(\d{1,2})\2(\d{1,2})(?!\d)',
                example='2025-08-12',
            ),
        ]

        self.total_pattern = PatternSpec(
            name='total_label',
            pattern=rf'(?:total\s+de\s+plat[aă]|total\s+plat[aă]|de\s+plat[aă]|total|suma)[\s:]*(?:lei|ron)?[\s:]*{AMOUNT}',
            example='TOTAL: 150,00 LEI',
            notes='Every match is collected; the last one wins',
        )

        self.vat_pattern = PatternSpec(
            name='vat_with_percent',
            pattern=(
                r'(?<![A-Za-z])(?:tva|t\.v\.a\.?)(?:[ \t]+[A-D](?![A-Za-z]))?[ \t]*[=:]?[ \t]*'
                r'(\d{1,2}(?:[.,]\d{1,2})?)[ \t]*%[\s:=]*(?:lei|ron)?[\s:]*'
                + AMOUNT
            ),
            example='TVA 19% 23,95',
            notes='First match wins; captures rate and amount',
        )

    def parse(self, text: str) -> ParsedReceipt:
        """
        Parse receipt text and extract all available fields.

        Args:
            text: OCR-extracted text from receipt

        Returns:
            ParsedReceipt draft; missing fields are empty and lower the score
        """
        if not text or not isinstance(text, str):
            return ParsedReceipt(raw_text=text if isinstance(text, str) else '',
                                 description=describe(ExpenseCategory.OTHER, ''))

        normalized = text.replace('\r\n', '\n').replace('\r', '\n')

        supplier_name = self.extract_supplier_name(normalized)
        amounts = self.extract_amounts(normalized)
        category = self._safe_categorize(supplier_name, normalized)

        receipt = ParsedReceipt(
            supplier_name=supplier_name,
            supplier_tax_id=self.extract_tax_id(normalized),
            document_number=self.extract_document_number(normalized),
            date=self.extract_date(normalized),
            total_amount=amounts.get('total_amount'),
            net_amount=amounts.get('net_amount'),
            vat_amount=amounts.get('vat_amount'),
            vat_rate_percent=amounts.get('vat_rate_percent'),
            category=category,
            description=describe(category, supplier_name),
            raw_text=text,
        )

        receipt.confidence_score = self.calculate_confidence(receipt)
        receipt.needs_review = receipt.confidence_score < LOW_CONFIDENCE_THRESHOLD

        logger.debug("Parsed receipt", extra={
            "category": receipt.category.value,
            "confidence": receipt.confidence_score,
            "has_total": receipt.total_amount is not None,
        })

        return receipt

    def extract_tax_id(self, text: str) -> str:
        """
        Extract supplier CIF/CUI, normalized to "RO" + digits.

        Returns:
            e.g. "RO1234567", or "" when no labelled tax id is present
        """
        try:
            match = self.tax_id_pattern.compiled.search(text)
            if not match:
                return ''
            return normalize_cif(match.group(1))

        except (re.error, AttributeError):
            logger.warning("Error extracting tax id", exc_info=True)
            return ''

    def extract_supplier_name(self, text: str) -> str:
        """
        Extract supplier name.

        Primary strategy looks for a legal form marker (SC, SRL, PFA, SA)
        followed by the company name. Fallback takes the first line that looks
        like a name rather than a header, number or decoration.
        """
        try:
            match = self.supplier_pattern.compiled.search(text)
            if match:
                name = match.group(1).strip(" \t.-'")
                if len(name) >= 2:
                    return name

            return self._first_name_like_line(text)

        except (re.error, AttributeError):
            logger.warning("Error extracting supplier name", exc_info=True)
            return ''

    def _first_name_like_line(self, text: str) -> str:
        lines = [line.strip() for line in text.split('\n')]

        for line in lines:
            if len(line) <= 3:
                continue
            folded = fold_diacritics(line)
            if any(word in folded for word in HEADER_WORDS):
                continue
            # Must start with a letter: digits, decorative punctuation
            # and OCR noise symbols are all rejected here
            if not line[0].isalpha():
                continue
            if FIELD_LABEL_LINE.match(line):
                continue

            cleaned = DECORATIVE_CHARS.sub('', line).strip()
            cleaned = re.sub(r'\s{2,}', ' ', cleaned)
            if len(cleaned) > 3:
                return cleaned

        return ''

    def extract_document_number(self, text: str) -> str:
        """
        Extract receipt/invoice number after a "seria", "nr", "doc" or "bon" label.

        Returns:
            First labelled token containing a digit, or ""
        """
        try:
            match = self.document_number_pattern.compiled.search(text)
            if not match:
                return ''
            return match.group(1).strip('-/')

        except (re.error, AttributeError):
            logger.warning("Error extracting document number", exc_info=True)
            return ''

    def extract_date(self, text: str) -> Optional[date]:
        """
        Extract receipt date.

        Day-first dates (12.08.2025, 12/08/25) are tried before year-first
        (2025-08-12); the first valid calendar date wins.
        """
        try:
            for spec in self.date_patterns:
                for match in spec.compiled.finditer(text):
                    parsed = self._to_date(spec.name, match)
                    if parsed is not None:
                        return parsed
            return None

        except (re.error, AttributeError):
            logger.warning("Error extracting date", exc_info=True)
            return None

    def _to_date(self, pattern_name: str, match: re.Match) -> Optional[date]:
        if pattern_name == 'day_first':
            day, _, month, year = match.groups()
            if len(year) == 2:
                year = f"20{year}"
        else:
            year, _, month, day = match.groups()

        try:
            return date(int(year), int(month), int(day))
        except ValueError:
            return None

    def extract_total(self, text: str) -> Optional[Decimal]:
        """
        Extract the tax-inclusive total.

        Receipts often restate a subtotal before the real total, so the last
        labelled amount wins. This is a heuristic and can pick the wrong line
        on receipts that print totals in another order.
        """
        try:
            total = None
            for match in self.total_pattern.compiled.finditer(text):
                amount = parse_money(match.group(1))
                if amount is not None:
                    total = amount
            return round_money(total) if total is not None else None

        except (re.error, AttributeError, InvalidOperation):
            logger.warning("Error extracting total", exc_info=True)
            return None

    def extract_vat(self, text: str) -> Dict[str, Optional[Decimal]]:
        """
        Extract the first "TVA <rate>% <amount>" line.

        Returns:
            Dict with 'vat_rate_percent' and 'vat_amount' (None when absent)
        """
        result: Dict[str, Optional[Decimal]] = {'vat_rate_percent': None, 'vat_amount': None}
        try:
            match = self.vat_pattern.compiled.search(text)
            if not match:
                return result

            amount = parse_money(match.group(2))
            if amount is None:
                return result

            result['vat_amount'] = round_money(amount)
            result['vat_rate_percent'] = _clean_rate(to_decimal(match.group(1).replace(',', '.')))
            return result

        except (re.error, AttributeError, InvalidOperation):
            logger.warning("Error extracting VAT", exc_info=True)
            return {'vat_rate_percent': None, 'vat_amount': None}

    def extract_amounts(self, text: str) -> Dict[str, Any]:
        """
        Extract total and VAT, then derive the missing side of the breakdown.

        - total and VAT known: net = total - VAT
        - only total known: VAT back-computed at the default rate
        - nothing known: all fields stay None
        """
        total = self.extract_total(text)
        vat = self.extract_vat(text)

        amounts: Dict[str, Any] = {
            'total_amount': total,
            'net_amount': None,
            'vat_amount': vat['vat_amount'],
            'vat_rate_percent': vat['vat_rate_percent'],
        }

        if total is None:
            return amounts

        try:
            if amounts['vat_amount'] is not None:
                amounts['net_amount'] = round_money(total - amounts['vat_amount'])
            else:
                net, vat_amount = split_total(total, self.default_vat_rate)
                amounts['net_amount'] = net
                amounts['vat_amount'] = vat_amount
                amounts['vat_rate_percent'] = self.default_vat_rate
        except (InvalidOperation, ArithmeticError):
            logger.warning("Error deriving net amount", exc_info=True)

        return amounts

    def _safe_categorize(self, supplier_name: str, text: str) -> ExpenseCategory:
        try:
            return categorize(supplier_name, text)
        except (TypeError, ValueError):
            logger.warning("Error categorizing receipt", exc_info=True)
            return ExpenseCategory.OTHER

    def calculate_confidence(self, receipt: ParsedReceipt) -> int:
        """
        Additive score out of 100 based on which fields were found.

        Advisory only: it flags drafts for manual review and is not a
        probability.
        """
        score = 0

        if len(receipt.supplier_name) > 3:
            score += CONFIDENCE_WEIGHTS['supplier_name']
        if receipt.supplier_tax_id:
            score += CONFIDENCE_WEIGHTS['supplier_tax_id']
        if receipt.document_number:
            score += CONFIDENCE_WEIGHTS['document_number']
        if receipt.total_amount is not None and receipt.total_amount > 0:
            score += CONFIDENCE_WEIGHTS['total_amount']
        if receipt.date is not None:
            score += CONFIDENCE_WEIGHTS['date']

        return min(score, 100)


def _clean_rate(rate: Optional[Decimal]) -> Optional[Decimal]:
    """19.00 -> 19, 5.5 stays 5.5."""
    if rate is None:
        return None
    if rate == rate.to_integral_value():
        return rate.quantize(Decimal('1'))
    return rate
