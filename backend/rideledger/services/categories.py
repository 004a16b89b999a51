"""
Expense category lexicon for Romanian receipts.

An ordered table of (category, keywords). The first category with a keyword
contained in the receipt text wins, so more specific categories come first.
Matching is by substring: "parcare" contains "rca" and lands in insurance.
"""

import unicodedata
from typing import Dict, List, Tuple

from rideledger.models.document import ExpenseCategory

CATEGORY_KEYWORDS: List[Tuple[ExpenseCategory, List[str]]] = [
    (ExpenseCategory.FUEL, [
        'omv', 'petrom', 'mol', 'rompetrol', 'shell', 'lukoil',
        'benzinarie', 'carburant', 'motorina', 'benzina',
    ]),
    (ExpenseCategory.REPAIRS, [
        'vulcanizare', 'piese auto', 'mecanica', 'reparatie', 'cauciuc',
        'tinichigerie',
    ]),
    (ExpenseCategory.INSURANCE, [
        'asigurare', 'rca', 'casco', 'city insurance', 'omniasig', 'groupama',
    ]),
    (ExpenseCategory.CAR_WASH, [
        'spalatorie', 'car wash', 'detailing', 'curatenie auto',
    ]),
    (ExpenseCategory.SERVICE, [
        'service auto', 'service', 'revizie', 'schimb ulei', 'filtre',
        'distributie',
    ]),
    (ExpenseCategory.CONSUMABLES, [
        'consumabile', 'ulei motor', 'filtre', 'becuri', 'stergatori',
        'antigel',
    ]),
    (ExpenseCategory.PARKING, [
        'parcare', 'parking', 'abonament parcare', 'taxa parcare',
    ]),
    (ExpenseCategory.FINES, [
        'amenda', 'contraventie', 'politia rutiera', 'radar',
    ]),
    (ExpenseCategory.COMMISSIONS, [
        'comision', 'taxa', 'fee', 'uber', 'bolt', 'comision platforma',
    ]),
]

DESCRIPTION_TEMPLATES: Dict[ExpenseCategory, str] = {
    ExpenseCategory.FUEL: "Fuel {supplier}",
    ExpenseCategory.REPAIRS: "Vehicle repair {supplier}",
    ExpenseCategory.INSURANCE: "Vehicle insurance {supplier}",
    ExpenseCategory.CAR_WASH: "Car wash {supplier}",
    ExpenseCategory.SERVICE: "Car service {supplier}",
    ExpenseCategory.CONSUMABLES: "Car consumables {supplier}",
    ExpenseCategory.PARKING: "Parking {supplier}",
    ExpenseCategory.FINES: "Fine {supplier}",
    ExpenseCategory.COMMISSIONS: "Commission {supplier}",
    ExpenseCategory.OTHER: "Expense {supplier}",
}

GENERIC_TEMPLATE = "Expense {supplier}"


def fold_diacritics(text: str) -> str:
    """Lower-case and drop Romanian diacritics (ă â î ș ş ț ţ)."""
    decomposed = unicodedata.normalize('NFKD', text.lower())
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def categorize(supplier_name: str, text: str) -> ExpenseCategory:
    """Assign the first category whose keyword occurs in supplier + text."""
    content = fold_diacritics(f"{supplier_name or ''} {text or ''}")

    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in content for keyword in keywords):
            return category

    return ExpenseCategory.OTHER


def describe(category: ExpenseCategory, supplier_name: str) -> str:
    """Human-readable description for the draft, e.g. "Fuel PETROM"."""
    template = DESCRIPTION_TEMPLATES.get(category, GENERIC_TEMPLATE)
    return template.format(supplier=supplier_name or '').strip()
