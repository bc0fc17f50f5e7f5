from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from ledgerpost.models.base import LPBaseModel, RemoteRecord
from ledgerpost.models.money import ZERO, to_money


class JournalLineDraft(LPBaseModel):
    """
    Candidate journal line. Exactly one of debit/credit is non-zero once the
    builder has accepted it.
    """

    account_id: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None
    project_id: Optional[str] = None
    class_id: Optional[str] = None

    @field_validator("debit", "credit", mode="before")
    @classmethod
    def _quantize(cls, value):
        return to_money(value)


class JournalEntryDraft(LPBaseModel):
    """
    Balanced journal entry ready for submission.
    """

    transaction_date: str
    description: str
    reference: Optional[str] = None
    status: str = "Posted"  # entries are created already posted
    created_by: str
    lines: List[JournalLineDraft] = Field(default_factory=list)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


class JournalEntryLineRecord(RemoteRecord):
    """Row of the `journalentrylines` resource."""
    id: Optional[str] = Field(default=None, alias="Id")
    journal_entry_id: Optional[str] = Field(default=None, alias="JournalEntryId")
    account_id: str = Field(alias="AccountId")
    description: Optional[str] = Field(default=None, alias="Description")
    debit: Decimal = Field(default=ZERO, alias="Debit")
    credit: Decimal = Field(default=ZERO, alias="Credit")
    project_id: Optional[str] = Field(default=None, alias="ProjectId")
    class_id: Optional[str] = Field(default=None, alias="ClassId")

    @field_validator("debit", "credit", mode="before")
    @classmethod
    def _quantize(cls, value):
        return to_money(value)
