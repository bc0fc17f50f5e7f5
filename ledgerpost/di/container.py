"""Dependency injection container for the posting engine."""
from typing import Optional

from ledgerpost.core.config import EngineSettings
from ledgerpost.integrations.data_service import AccountingDataClient
from ledgerpost.services.account_defaults import AccountDefaultResolver, TTLCache
from ledgerpost.services.documents import DocumentRepository
from ledgerpost.services.journal_entries import JournalEntryWriter
from ledgerpost.services.locks import DocumentLocks
from ledgerpost.services.payments import PaymentRecorder
from ledgerpost.services.posting import DocumentPostingService
from ledgerpost.services.reversal import ReversalService


class ServiceContainer:
    def __init__(self, settings: Optional[EngineSettings] = None) -> None:
        self._settings = settings
        self._client = None
        self._resolver = None
        self._repository = None
        self._writer = None
        self._locks = None
        self._posting = None
        self._reversal = None
        self._payments = None

    def settings(self) -> EngineSettings:
        if not self._settings:
            self._settings = EngineSettings.from_env()
        return self._settings

    def client(self) -> AccountingDataClient:
        if not self._client:
            settings = self.settings()
            self._client = AccountingDataClient(
                settings.data_api_url,
                token=settings.data_api_token,
                timeout=settings.data_api_timeout_secs,
            )
        return self._client

    def resolver(self) -> AccountDefaultResolver:
        if not self._resolver:
            cache = TTLCache(ttl_seconds=self.settings().account_defaults_ttl_secs)
            self._resolver = AccountDefaultResolver(self.client(), cache=cache)
        return self._resolver

    def repository(self) -> DocumentRepository:
        if not self._repository:
            self._repository = DocumentRepository(self.client())
        return self._repository

    def writer(self) -> JournalEntryWriter:
        if not self._writer:
            self._writer = JournalEntryWriter(self.client())
        return self._writer

    def locks(self) -> DocumentLocks:
        # One lock table shared by posting, voiding and payments
        if not self._locks:
            self._locks = DocumentLocks()
        return self._locks

    def posting(self) -> DocumentPostingService:
        if not self._posting:
            self._posting = DocumentPostingService(
                self.repository(),
                self.resolver(),
                self.writer(),
                locks=self.locks(),
                revenue_policy=self.settings().revenue_account_policy,
            )
        return self._posting

    def reversal(self) -> ReversalService:
        if not self._reversal:
            settings = self.settings()
            self._reversal = ReversalService(
                self.repository(),
                self.writer(),
                locks=self.locks(),
                void_marks_original_entry=settings.void_marks_original_entry,
                record_reversing_entry_id=settings.record_reversing_entry_id,
            )
        return self._reversal

    def payments(self) -> PaymentRecorder:
        if not self._payments:
            self._payments = PaymentRecorder(
                self.client(),
                self.repository(),
                self.resolver(),
                self.writer(),
                locks=self.locks(),
            )
        return self._payments

    def reset(self) -> None:
        """Drop every built service (tests swap settings between runs)."""
        if self._client:
            self._client.close()
        self.__init__()


container = ServiceContainer()
