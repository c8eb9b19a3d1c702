class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class InvalidIdError(ValidationError):
    pass


class DuplicateIdError(ValidationError):
    pass


class EmptyNameError(ValidationError):
    pass


class InvalidNameError(ValidationError):
    pass


class DuplicateNameError(ValidationError):
    """Raised when a new item reuses the exact name of an existing one.

    ``existing`` is the item already in the ledger, so callers can offer
    to restock it instead of creating a second product.
    """

    def __init__(self, message: str, existing=None):
        super().__init__(message)
        self.existing = existing


class InvalidCategoryError(ValidationError):
    pass


class NegativeQuantityError(ValidationError):
    pass


class NegativePriceError(ValidationError):
    pass


class InvalidQuantityError(ValidationError):
    pass


class InvalidPriceError(ValidationError):
    pass


class OutOfStockError(ValidationError):
    pass


class InsufficientStockError(ValidationError):
    pass


class NotFoundError(AppError):
    pass


class PersistenceError(AppError):
    pass
