class ConlluServiceError(Exception):
    """Base error for the annotation pipeline"""


class ConfigError(ConlluServiceError):
    """Raised when no prediction service is configured for an annotation type"""


class StoreTransactionError(ConlluServiceError):
    """Raised when the store rejects a transaction; nothing from it was applied"""


class MissingEntityError(StoreTransactionError):
    """Raised when a transaction sets a key on an entity that no longer exists"""
