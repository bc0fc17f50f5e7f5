"""
Journal entry construction.

JournalEntryBuilder is the one place a JournalEntryDraft is created, so every
entry this engine submits (postings, reversals, payments) passes the same
checks:
- at least one line
- amounts are non-negative, and exactly one of debit/credit is non-zero
- total debits equal total credits to within one cent
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional

from ledgerpost.models.journal_entries import JournalEntryDraft, JournalEntryLineRecord, JournalLineDraft
from ledgerpost.models.money import BALANCE_TOLERANCE, ZERO, to_money
from ledgerpost.services.errors import UnbalancedEntryError


class JournalEntryBuilder:
    def __init__(
        self,
        description: str,
        transaction_date: str,
        created_by: str,
        reference: Optional[str] = None,
    ) -> None:
        self.description = description
        self.transaction_date = transaction_date
        self.created_by = created_by
        self.reference = reference
        self._lines: List[JournalLineDraft] = []

    # ------------------------------------------------------------------ #
    # Line accumulation
    # ------------------------------------------------------------------ #
    def add_line(
        self,
        account_id: str,
        debit: Decimal = ZERO,
        credit: Decimal = ZERO,
        description: Optional[str] = None,
        project_id: Optional[str] = None,
        class_id: Optional[str] = None,
    ) -> "JournalEntryBuilder":
        self._lines.append(
            JournalLineDraft(
                account_id=account_id,
                debit=to_money(debit),
                credit=to_money(credit),
                description=description,
                project_id=project_id,
                class_id=class_id,
            )
        )
        return self

    def debit(self, account_id: str, amount: Decimal, description: Optional[str] = None, **dimensions) -> "JournalEntryBuilder":
        return self.add_line(account_id, debit=amount, description=description, **dimensions)

    def credit(self, account_id: str, amount: Decimal, description: Optional[str] = None, **dimensions) -> "JournalEntryBuilder":
        return self.add_line(account_id, credit=amount, description=description, **dimensions)

    @property
    def lines(self) -> List[JournalLineDraft]:
        return list(self._lines)

    # ------------------------------------------------------------------ #
    # Build
    # ------------------------------------------------------------------ #
    def build(self) -> JournalEntryDraft:
        if not self._lines:
            raise UnbalancedEntryError(f"Journal entry '{self.description}' has no lines")

        for index, line in enumerate(self._lines):
            if not line.account_id:
                raise UnbalancedEntryError(
                    f"Journal line {index + 1} of '{self.description}' has no account",
                    line=index + 1,
                )
            if line.debit < ZERO or line.credit < ZERO:
                raise UnbalancedEntryError(
                    f"Journal line {index + 1} of '{self.description}' has a negative amount",
                    line=index + 1,
                    account_id=line.account_id,
                )
            if (line.debit > ZERO) == (line.credit > ZERO):
                raise UnbalancedEntryError(
                    f"Journal line {index + 1} of '{self.description}' must carry exactly one of debit or credit",
                    line=index + 1,
                    account_id=line.account_id,
                )

        total_debit = sum((line.debit for line in self._lines), ZERO)
        total_credit = sum((line.credit for line in self._lines), ZERO)
        if abs(total_debit - total_credit) >= BALANCE_TOLERANCE:
            raise UnbalancedEntryError(
                f"Journal entry '{self.description}' is unbalanced: "
                f"debits {total_debit} != credits {total_credit}",
                total_debit=str(total_debit),
                total_credit=str(total_credit),
            )

        return JournalEntryDraft(
            transaction_date=self.transaction_date,
            description=self.description,
            reference=self.reference,
            created_by=self.created_by,
            lines=list(self._lines),
        )

    # ------------------------------------------------------------------ #
    # Reversal
    # ------------------------------------------------------------------ #
    @classmethod
    def reversal_of(
        cls,
        original_lines: Iterable[JournalEntryLineRecord],
        description: str,
        transaction_date: str,
        created_by: str,
        reference: Optional[str] = None,
        line_prefix: str = "VOID: ",
    ) -> "JournalEntryBuilder":
        """Mirror an entry: same accounts and dimensions, debit and credit swapped.

        Stored lines are not always well formed. Lines netting to zero are
        dropped and a negative amount is reversed onto the opposite side.
        """
        builder = cls(description, transaction_date, created_by, reference=reference)
        for line in original_lines:
            net_debit = line.debit - line.credit
            if net_debit == ZERO:
                continue
            builder.add_line(
                line.account_id,
                debit=-net_debit if net_debit < ZERO else ZERO,
                credit=net_debit if net_debit > ZERO else ZERO,
                description=f"{line_prefix}{line.description or ''}",
                project_id=line.project_id,
                class_id=line.class_id,
            )
        return builder
