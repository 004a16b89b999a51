"""
RideLedger backend: receipt OCR, VAT rates and company lookup for
Romanian rideshare drivers.
"""

__version__ = "0.1.0"
