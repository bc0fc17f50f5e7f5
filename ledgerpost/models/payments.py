"""Payment request models.

Fields are optional at the model level so that missing data surfaces as a
ledger ValidationError listing every absent field, not a pydantic error.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field

from ledgerpost.models.base import LPBaseModel


class _PaymentModel(LPBaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, populate_by_name=True)


class InvoiceApplication(_PaymentModel):
    invoice_id: Optional[str] = Field(default=None, alias="invoiceId")
    amount_applied: Optional[Decimal] = Field(default=None, alias="amountApplied")


class BillApplication(_PaymentModel):
    bill_id: Optional[str] = Field(default=None, alias="billId")
    amount_applied: Optional[Decimal] = Field(default=None, alias="amountApplied")


class InvoicePaymentInput(_PaymentModel):
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    payment_date: Optional[str] = Field(default=None, alias="paymentDate")
    total_amount: Optional[Decimal] = Field(default=None, alias="totalAmount")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    deposit_account_id: Optional[str] = Field(default=None, alias="depositAccountId")
    memo: Optional[str] = None
    applications: List[InvoiceApplication] = Field(default_factory=list)


class BillPaymentInput(_PaymentModel):
    vendor_id: Optional[str] = Field(default=None, alias="vendorId")
    payment_date: Optional[str] = Field(default=None, alias="paymentDate")
    total_amount: Optional[Decimal] = Field(default=None, alias="totalAmount")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    payment_account_id: Optional[str] = Field(default=None, alias="paymentAccountId")
    memo: Optional[str] = None
    applications: List[BillApplication] = Field(default_factory=list)
