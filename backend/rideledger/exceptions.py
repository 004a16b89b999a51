"""
Domain errors raised by services and translated to HTTP errors by the routers.

Parsing and VAT lookups never raise; these cover the external collaborators
(OCR engine, storage, ANAF) and invalid user input.
"""


class RideLedgerError(Exception):
    """Base class for all service errors."""


class RecognitionError(RideLedgerError):
    """The OCR engine could not produce text for an image."""


class InvalidUpload(RideLedgerError):
    """Uploaded file has the wrong type or is too large."""


class StorageError(RideLedgerError):
    """Supabase storage or table write failed."""


class InvalidTaxId(RideLedgerError):
    """A CIF/CUI does not have a valid shape."""


class CompanyLookupError(RideLedgerError):
    """The ANAF registry could not be queried or answered unexpectedly."""
