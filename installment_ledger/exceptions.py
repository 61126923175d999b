"""Custom exception hierarchy for installment-ledger."""


class LedgerError(Exception):
    """Base exception for all installment-ledger errors."""


class InvalidInputError(LedgerError):
    """Raised when an operation receives invalid input (rejected before mutation)."""


class EntityNotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""


class PaymentNotFoundError(EntityNotFoundError):
    """Raised when a payment id is not present (or not eligible) on a sale."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""


class PersistenceError(LedgerError):
    """Raised when a persistence boundary call fails."""
