"""
Integrations

- Accounting-data service (Data API Builder style REST)
"""

from ledgerpost.integrations.data_service import AccountingDataClient, odata_eq

__all__ = [
    "AccountingDataClient",
    "odata_eq",
]
