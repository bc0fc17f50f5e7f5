# Lazy imports to avoid dependency chains at startup
def __getattr__(name):
    if name == "AccountDefaultResolver":
        from ledgerpost.services.account_defaults import AccountDefaultResolver
        return AccountDefaultResolver
    elif name == "TTLCache":
        from ledgerpost.services.account_defaults import TTLCache
        return TTLCache
    elif name == "JournalEntryBuilder":
        from ledgerpost.services.journal_builder import JournalEntryBuilder
        return JournalEntryBuilder
    elif name == "JournalEntryWriter":
        from ledgerpost.services.journal_entries import JournalEntryWriter
        return JournalEntryWriter
    elif name == "DocumentRepository":
        from ledgerpost.services.documents import DocumentRepository
        return DocumentRepository
    elif name == "DocumentPostingService":
        from ledgerpost.services.posting import DocumentPostingService
        return DocumentPostingService
    elif name == "ReversalService":
        from ledgerpost.services.reversal import ReversalService
        return ReversalService
    elif name == "PaymentRecorder":
        from ledgerpost.services.payments import PaymentRecorder
        return PaymentRecorder
    raise AttributeError(f"module 'ledgerpost.services' has no attribute '{name}'")

__all__ = [
    "AccountDefaultResolver",
    "TTLCache",
    "JournalEntryBuilder",
    "JournalEntryWriter",
    "DocumentRepository",
    "DocumentPostingService",
    "ReversalService",
    "PaymentRecorder",
]
