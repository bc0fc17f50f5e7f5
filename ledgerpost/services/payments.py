"""
Payment recording

Customer payments and vendor (bill) payments share one flow:

    Customer payment:  DR Cash (deposit account or DefaultCash)
                       CR Accounts Receivable
    Bill payment:      DR Accounts Payable
                       CR Cash (payment account or DefaultCash)

The input, the applications and every target document are validated before
the payment record is written. After that the payment, its journal entry and
each application are written in order; a failure part-way is raised as
RemoteServiceError naming the step and the ids already written.
"""
from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ledgerpost.integrations.data_service import AccountingDataClient
from ledgerpost.models.account_defaults import AccountType
from ledgerpost.models.documents import BILL, INVOICE, Document, DocumentKind
from ledgerpost.models.money import ZERO, to_money, to_wire
from ledgerpost.models.payments import BillPaymentInput, InvoicePaymentInput
from ledgerpost.models.results import PaymentResult
from ledgerpost.services.account_defaults import AccountDefaultResolver
from ledgerpost.services.documents import DocumentRepository
from ledgerpost.services.errors import ConfigurationError, RemoteServiceError, ValidationError
from ledgerpost.services.journal_builder import JournalEntryBuilder
from ledgerpost.services.journal_entries import JournalEntryWriter
from ledgerpost.services.locks import DocumentLocks
from ledgerpost.services.logging import log_posting_event
from ledgerpost.services.operations import OperationLog, Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentKind:
    """Where a payment type lives in the data service and how it posts."""
    name: str
    slug: str
    input_model: type
    target: DocumentKind
    resource: str
    applications_resource: str
    parent_key: str
    number_prefix: str
    counterparty_field: str
    counterparty_input: str
    counterparty_resource: str
    cash_account_field: str
    cash_input: str
    control_account: AccountType
    result_key: str


CUSTOMER_PAYMENT = PaymentKind(
    name="Payment",
    slug="invoice_payment",
    input_model=InvoicePaymentInput,
    target=INVOICE,
    resource="payments",
    applications_resource="paymentapplications",
    parent_key="PaymentId",
    number_prefix="PMT",
    counterparty_field="CustomerId",
    counterparty_input="customerId",
    counterparty_resource="customers",
    cash_account_field="DepositAccountId",
    cash_input="deposit",
    control_account=AccountType.ACCOUNTS_RECEIVABLE,
    result_key="paymentId",
)

BILL_PAYMENT = PaymentKind(
    name="Bill payment",
    slug="bill_payment",
    input_model=BillPaymentInput,
    target=BILL,
    resource="billpayments",
    applications_resource="billpaymentapplications",
    parent_key="BillPaymentId",
    number_prefix="BP",
    counterparty_field="VendorId",
    counterparty_input="vendorId",
    counterparty_resource="vendors",
    cash_account_field="PaymentAccountId",
    cash_input="payment",
    control_account=AccountType.ACCOUNTS_PAYABLE,
    result_key="billPaymentId",
)


@dataclass
class _Payment:
    """Payment input after validation, independent of payment kind."""
    counterparty_id: str
    payment_date: str
    total_amount: Decimal
    payment_method: str
    cash_account_override: Optional[str]
    memo: Optional[str]
    applications: List[Tuple[str, Decimal]]


def _payment_number(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}"


class PaymentRecorder:
    def __init__(
        self,
        client: AccountingDataClient,
        repository: DocumentRepository,
        resolver: AccountDefaultResolver,
        writer: JournalEntryWriter,
        locks: Optional[DocumentLocks] = None,
        number_factory: Callable[[str], str] = _payment_number,
    ) -> None:
        self.client = client
        self.repository = repository
        self.resolver = resolver
        self.writer = writer
        self.locks = locks or DocumentLocks()
        self._number_factory = number_factory

    def record_invoice_payment(
        self,
        payment: Union[InvoicePaymentInput, Dict[str, Any]],
        acting_user: str = "system",
    ) -> PaymentResult:
        return self._record(CUSTOMER_PAYMENT, payment, acting_user)

    def record_bill_payment(
        self,
        payment: Union[BillPaymentInput, Dict[str, Any]],
        acting_user: str = "system",
    ) -> PaymentResult:
        return self._record(BILL_PAYMENT, payment, acting_user)

    # ------------------------------------------------------------------ #
    # Orchestration
    # ------------------------------------------------------------------ #
    def _record(self, kind: PaymentKind, raw: Any, acting_user: str) -> PaymentResult:
        payment = self._validate_input(kind, raw)

        control = self.resolver.require_account(kind.control_account)
        cash_account_id = self._cash_account(kind, payment)

        target_ids = [target_id for target_id, _ in payment.applications]
        with self.locks.hold_many(kind.target.slug, target_ids):
            payment_id = str(uuid.uuid4())
            ops = OperationLog(f"record_{kind.slug}", payment_id)

            with ops.step(Step.FETCH_TARGETS):
                targets = self._load_targets(kind, payment)

            counterparty_name = self._counterparty_name(kind, payment.counterparty_id)
            payment_number = self._number_factory(kind.number_prefix)
            draft = self._build_entry(
                kind, payment, payment_number, counterparty_name, control.account_id, cash_account_id, acting_user
            )

            with ops.step(Step.CREATE_PAYMENT):
                self.client.create_record(
                    kind.resource,
                    {
                        "Id": payment_id,
                        "PaymentNumber": payment_number,
                        kind.counterparty_field: payment.counterparty_id,
                        "PaymentDate": payment.payment_date,
                        "TotalAmount": to_wire(payment.total_amount),
                        "PaymentMethod": payment.payment_method,
                        kind.cash_account_field: cash_account_id,
                        "Memo": payment.memo,
                        "Status": "Completed",
                    },
                )
                ops.record(payment_id=payment_id)

            journal_entry_id = self.writer.submit(draft, ops)

            with ops.step(Step.LINK_PAYMENT_ENTRY):
                self.client.update_record(kind.resource, payment_id, {"JournalEntryId": journal_entry_id})

            with ops.step(Step.APPLY_PAYMENT):
                for index, (target_id, amount) in enumerate(payment.applications):
                    self.client.create_record(
                        kind.applications_resource,
                        {
                            kind.parent_key: payment_id,
                            kind.target.parent_key: target_id,
                            "AmountApplied": to_wire(amount),
                        },
                    )
                    target = targets[target_id]
                    self.repository.apply_payment(target, amount)
                    # Same target applied twice in one payment
                    target.amount_paid += amount
                    target.etag = None
                    ops.record(applications_written=index + 1)

        log_posting_event(
            f"record_{kind.slug}",
            payment_id,
            journal_entry_id=journal_entry_id,
            acting_user=acting_user,
            payment_number=payment_number,
            total_amount=str(payment.total_amount),
            applications=len(payment.applications),
        )
        return PaymentResult(
            payment_id=payment_id,
            payment_number=payment_number,
            journal_entry_id=journal_entry_id,
            total_amount=payment.total_amount,
            applications_count=len(payment.applications),
            result_key=kind.result_key,
        )

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #
    def _validate_input(self, kind: PaymentKind, raw: Any) -> _Payment:
        if isinstance(raw, BaseModel):
            raw = raw.model_dump(by_alias=True)
        try:
            data = kind.input_model.model_validate(raw or {})
        except PydanticValidationError as exc:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
            raise ValidationError(f"Invalid payment fields: {', '.join(fields)}") from exc

        counterparty_id = data.customer_id if kind is CUSTOMER_PAYMENT else data.vendor_id
        missing = [
            name
            for name, value in (
                (kind.counterparty_input, counterparty_id),
                ("paymentDate", data.payment_date),
                ("totalAmount", data.total_amount),
            )
            if value is None or value == ""
        ]
        if missing:
            raise ValidationError.missing(missing)

        total = to_money(data.total_amount)
        if total <= ZERO:
            raise ValidationError("Payment totalAmount must be greater than zero")

        target_field = "invoiceId" if kind is CUSTOMER_PAYMENT else "billId"
        applications: List[Tuple[str, Decimal]] = []
        for index, app in enumerate(data.applications):
            target_id = app.invoice_id if kind is CUSTOMER_PAYMENT else app.bill_id
            if not target_id:
                raise ValidationError(
                    f"Application {index + 1} is missing {target_field}",
                    missing_fields=[f"applications.{index}.{target_field}"],
                )
            amount = to_money(app.amount_applied)
            if amount <= ZERO:
                raise ValidationError(f"Application {index + 1} amountApplied must be greater than zero")
            applications.append((target_id, amount))

        applied = sum((amount for _, amount in applications), ZERO)
        if applied > total:
            raise ValidationError(f"Applications total {applied} exceeds payment totalAmount {total}")

        cash_override = data.deposit_account_id if kind is CUSTOMER_PAYMENT else data.payment_account_id
        return _Payment(
            counterparty_id=counterparty_id,
            payment_date=data.payment_date,
            total_amount=total,
            payment_method=data.payment_method or "Check",
            cash_account_override=cash_override or None,
            memo=data.memo,
            applications=applications,
        )

    def _cash_account(self, kind: PaymentKind, payment: _Payment) -> str:
        if payment.cash_account_override:
            return payment.cash_account_override
        cash = self.resolver.get_account_default(AccountType.DEFAULT_CASH)
        if not cash:
            raise ConfigurationError(
                f"No {kind.cash_input} account specified and Default Cash account not configured",
                account_type=AccountType.DEFAULT_CASH.value,
            )
        return cash.account_id

    def _load_targets(self, kind: PaymentKind, payment: _Payment) -> Dict[str, Document]:
        applied: Dict[str, Decimal] = OrderedDict()
        for target_id, amount in payment.applications:
            applied[target_id] = applied.get(target_id, ZERO) + amount

        targets: Dict[str, Document] = {}
        for target_id, amount in applied.items():
            document = self.repository.get(kind.target, target_id)
            if document.is_voided:
                raise ValidationError(f"{kind.target.name} {target_id} is voided and cannot receive payments")
            if not document.is_posted:
                raise ValidationError(f"{kind.target.name} {target_id} is not posted and cannot receive payments")
            if amount > document.balance_due:
                raise ValidationError(
                    f"Amount applied to {kind.target.name} {target_id} ({amount}) "
                    f"exceeds its balance due ({document.balance_due})"
                )
            targets[target_id] = document
        return targets

    # ------------------------------------------------------------------ #
    # Entry construction
    # ------------------------------------------------------------------ #
    def _counterparty_name(self, kind: PaymentKind, counterparty_id: str) -> str:
        fallback = kind.target.counterparty_fallback
        try:
            record = self.client.get_record(kind.counterparty_resource, counterparty_id)
        except RemoteServiceError as exc:
            logger.warning(f"Could not read {kind.counterparty_resource} {counterparty_id}: {exc.detail}")
            return fallback
        return (record or {}).get("Name") or fallback

    def _build_entry(
        self,
        kind: PaymentKind,
        payment: _Payment,
        payment_number: str,
        counterparty_name: str,
        control_account_id: str,
        cash_account_id: str,
        acting_user: str,
    ):
        total = payment.total_amount
        if kind is CUSTOMER_PAYMENT:
            builder = JournalEntryBuilder(
                f"Payment received - {counterparty_name}", payment.payment_date, acting_user, reference=payment_number
            )
            builder.debit(cash_account_id, total, f"Payment {payment_number}")
            builder.credit(control_account_id, total, f"Payment {payment_number} - AR")
        else:
            builder = JournalEntryBuilder(
                f"Payment to {counterparty_name}", payment.payment_date, acting_user, reference=payment_number
            )
            builder.debit(control_account_id, total, f"Bill Payment {payment_number} - AP")
            builder.credit(cash_account_id, total, f"Bill Payment {payment_number}")
        return builder.build()
