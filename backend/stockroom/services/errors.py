class ServiceException(Exception):
    """Base for errors a service hands back to its caller."""


class InvalidInput(ServiceException):
    """Malformed, missing or out-of-range input. Raised before touching the store."""


class NotFound(ServiceException):
    """The referenced product does not exist."""


class StorageError(ServiceException):
    """The store failed mid-transaction; the transaction was rolled back."""
