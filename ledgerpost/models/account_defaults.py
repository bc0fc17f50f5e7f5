"""Account default models."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from ledgerpost.models.base import LPBaseModel, RemoteRecord


class AccountType(str, Enum):
    """Semantic account roles that can be mapped to a ledger account."""
    ACCOUNTS_RECEIVABLE = "AccountsReceivable"
    ACCOUNTS_PAYABLE = "AccountsPayable"
    DEFAULT_REVENUE = "DefaultRevenue"
    DEFAULT_CASH = "DefaultCash"
    SALES_TAX_PAYABLE = "SalesTaxPayable"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: str) -> Optional["AccountType"]:
        try:
            return cls(value)
        except ValueError:
            return None


_LABELS = {
    AccountType.ACCOUNTS_RECEIVABLE: "Accounts Receivable",
    AccountType.ACCOUNTS_PAYABLE: "Accounts Payable",
    AccountType.DEFAULT_REVENUE: "Default Revenue",
    AccountType.DEFAULT_CASH: "Default Cash",
    AccountType.SALES_TAX_PAYABLE: "Sales Tax Payable",
}


class AccountDefault(RemoteRecord):
    """Row of the `accountdefaults` resource."""
    id: Optional[str] = Field(default=None, alias="Id")
    account_type: str = Field(default="", alias="AccountType")
    account_id: Optional[str] = Field(default=None, alias="AccountId")
    description: Optional[str] = Field(default=None, alias="Description")
    is_active: Optional[bool] = Field(default=False, alias="IsActive")


class ResolvedAccount(LPBaseModel):
    account_type: AccountType
    account_id: str
    default_id: Optional[str] = None
    description: Optional[str] = None
