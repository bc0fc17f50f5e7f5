"""
ledgerpost

Automated double-entry posting engine for invoices, bills and payments
held in a remote accounting-data service.
"""

__version__ = "0.1.0"
