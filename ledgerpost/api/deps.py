"""FastAPI dependencies for ledger posting services."""
from typing import Optional

from fastapi import Header

from ledgerpost.di.container import container


def get_posting_service():
    return container.posting()


def get_reversal_service():
    return container.reversal()


def get_payment_recorder():
    return container.payments()


def get_account_resolver():
    return container.resolver()


def get_acting_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    return x_user_id or container.settings().default_acting_user
