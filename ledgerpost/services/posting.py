"""
Document posting

Turns an unposted invoice or bill into a balanced journal entry:

    Invoice:  DR Accounts Receivable (total)
              CR Revenue per line (line account or DefaultRevenue)
              CR Sales Tax Payable (tax amount, if any)

    Bill:     DR Expense per line (line account, required)
              CR Accounts Payable (total)

Every precondition (document exists, not yet posted, has lines, accounts
resolve, entry balances) is checked before the first write. After that the
entry, its lines and the document write-back happen in sequence; a failure
part-way is raised as RemoteServiceError naming the step.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from ledgerpost.core.config import RevenueAccountPolicy
from ledgerpost.models.account_defaults import AccountType
from ledgerpost.models.documents import BILL, INVOICE, Document, DocumentKind, DocumentLine
from ledgerpost.models.journal_entries import JournalEntryDraft
from ledgerpost.models.money import ZERO
from ledgerpost.models.results import PostingResult
from ledgerpost.services.account_defaults import AccountDefaultResolver
from ledgerpost.services.documents import DocumentRepository
from ledgerpost.services.errors import AlreadyPostedError, MissingLineAccountError, NoLinesError
from ledgerpost.services.journal_builder import JournalEntryBuilder
from ledgerpost.services.journal_entries import JournalEntryWriter
from ledgerpost.services.locks import DocumentLocks
from ledgerpost.services.logging import log_posting_event
from ledgerpost.services.operations import OperationLog, Step

logger = logging.getLogger(__name__)


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class DocumentPostingService:
    def __init__(
        self,
        repository: DocumentRepository,
        resolver: AccountDefaultResolver,
        writer: JournalEntryWriter,
        locks: Optional[DocumentLocks] = None,
        revenue_policy: RevenueAccountPolicy = RevenueAccountPolicy.FALLBACK,
        today: Callable[[], str] = _today,
    ) -> None:
        self.repository = repository
        self.resolver = resolver
        self.writer = writer
        self.locks = locks or DocumentLocks()
        self.revenue_policy = revenue_policy
        self._today = today

    def post_invoice(self, invoice_id: str, acting_user: str = "system") -> PostingResult:
        return self._post(INVOICE, invoice_id, acting_user)

    def post_bill(self, bill_id: str, acting_user: str = "system") -> PostingResult:
        return self._post(BILL, bill_id, acting_user)

    # ------------------------------------------------------------------ #
    # Orchestration
    # ------------------------------------------------------------------ #
    def _post(self, kind: DocumentKind, document_id: str, acting_user: str) -> PostingResult:
        with self.locks.hold(kind.slug, document_id):
            ops = OperationLog(f"post_{kind.slug}", document_id)

            with ops.step(Step.FETCH_DOCUMENT):
                document = self.repository.get(kind, document_id)

            # Only guard against double posting; the data service will happily
            # accept a second entry for the same document.
            if document.is_posted:
                raise AlreadyPostedError(kind.name, document_id, document.journal_entry_id)

            with ops.step(Step.FETCH_LINES):
                lines = self.repository.lines(kind, document_id)
            if not lines:
                raise NoLinesError(kind.name, document_id)

            with ops.step(Step.RESOLVE_ACCOUNTS):
                if kind is INVOICE:
                    draft = self._build_invoice_entry(document, lines, acting_user)
                else:
                    draft = self._build_bill_entry(document, lines, acting_user)
            logger.debug(f"Built entry for {kind.slug} {document_id}: {len(draft.lines)} lines totalling {draft.total_debit}")

            journal_entry_id = self.writer.submit(draft, ops)

            with ops.step(Step.UPDATE_DOCUMENT):
                self.repository.mark_posted(document, journal_entry_id, acting_user)

        log_posting_event(
            f"post_{kind.slug}",
            document_id,
            journal_entry_id=journal_entry_id,
            acting_user=acting_user,
            total_amount=str(document.total_amount),
            entry_lines=len(draft.lines),
        )
        return PostingResult(
            document_kind=kind.name,
            document_id=document_id,
            journal_entry_id=journal_entry_id,
            total_amount=document.total_amount,
            lines_count=len(lines),
            result_key=kind.result_key,
        )

    # ------------------------------------------------------------------ #
    # Entry construction
    # ------------------------------------------------------------------ #
    def _builder_for(self, document: Document, acting_user: str) -> JournalEntryBuilder:
        return JournalEntryBuilder(
            description=f"{document.kind.name} {document.display_number} - {document.display_counterparty}",
            transaction_date=document.transaction_date or self._today(),
            created_by=acting_user,
            reference=document.number,
        )

    def _build_invoice_entry(self, document: Document, lines: List[DocumentLine], acting_user: str) -> JournalEntryDraft:
        receivable = self.resolver.require_account(INVOICE.control_account)
        builder = self._builder_for(document, acting_user)

        builder.debit(
            receivable.account_id,
            document.total_amount,
            _control_description(INVOICE, document),
            project_id=document.project_id,
            class_id=document.class_id,
        )

        for line in lines:
            if line.amount == ZERO:
                continue
            account_id = line.account_id or self._fallback_revenue_account(document, line)
            _add_signed(
                builder,
                account_id,
                line.amount,
                credit_side=True,
                description=line.description or "Invoice line",
                project_id=line.project_id or document.project_id,
                class_id=line.class_id or document.class_id,
            )

        if document.tax_amount > ZERO:
            tax_account = self.resolver.get_account_default(AccountType.SALES_TAX_PAYABLE)
            if tax_account:
                tax_account_id = tax_account.account_id
            else:
                # No tax liability account configured: book the tax as revenue
                tax_account_id = self.resolver.require_account(AccountType.DEFAULT_REVENUE).account_id
            builder.credit(
                tax_account_id,
                document.tax_amount,
                f"Sales Tax - Invoice {document.display_number}",
                project_id=document.project_id,
                class_id=document.class_id,
            )

        return builder.build()

    def _build_bill_entry(self, document: Document, lines: List[DocumentLine], acting_user: str) -> JournalEntryDraft:
        payable = self.resolver.require_account(BILL.control_account)
        builder = self._builder_for(document, acting_user)

        for line in lines:
            if not line.account_id:
                raise MissingLineAccountError(BILL.name, document.id, line.id, BILL.line_account_role)
            if line.amount == ZERO:
                continue
            _add_signed(
                builder,
                line.account_id,
                line.amount,
                credit_side=False,
                description=line.description or "Bill expense",
                project_id=line.project_id or document.project_id,
                class_id=line.class_id or document.class_id,
            )

        builder.credit(
            payable.account_id,
            document.total_amount,
            _control_description(BILL, document),
            project_id=document.project_id,
            class_id=document.class_id,
        )
        return builder.build()

    def _fallback_revenue_account(self, document: Document, line: DocumentLine) -> str:
        if self.revenue_policy is RevenueAccountPolicy.REQUIRE:
            raise MissingLineAccountError(INVOICE.name, document.id, line.id, INVOICE.line_account_role)
        return self.resolver.require_account(AccountType.DEFAULT_REVENUE).account_id


def _control_description(kind: DocumentKind, document: Document) -> str:
    return f"{kind.control_prefix} - {kind.name} {document.display_number}"


def _add_signed(
    builder: JournalEntryBuilder,
    account_id: str,
    amount: Decimal,
    credit_side: bool,
    description: str,
    project_id: Optional[str],
    class_id: Optional[str],
) -> None:
    """Negative line amounts (discounts, credits) post to the opposite side."""
    on_credit = credit_side if amount > ZERO else not credit_side
    if on_credit:
        builder.credit(account_id, abs(amount), description, project_id=project_id, class_id=class_id)
    else:
        builder.debit(account_id, abs(amount), description, project_id=project_id, class_id=class_id)
