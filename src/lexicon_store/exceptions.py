"""Custom exception hierarchy for lexicon-store."""


class LexiconStoreError(Exception):
    """Base exception for all lexicon-store errors."""


class ValidationError(LexiconStoreError):
    """Invalid input (empty word, bad shape, bad page parameters)."""


class DataImportError(ValidationError):
    """Malformed import input (not a JSON array, unreadable file)."""


class EntityNotFoundError(LexiconStoreError):
    """Word document doesn't exist in the store."""


class RelationError(LexiconStoreError):
    """Root graph constraint violation (self-root, demoting a root)."""


class SourceUnavailableError(LexiconStoreError):
    """External lookup source failed at the transport level."""


class DatabaseError(LexiconStoreError):
    """Schema version mismatch, connection or write failure."""
