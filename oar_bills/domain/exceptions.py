"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Payment input is malformed, e.g. a future-dated payment"""

    pass


class BillNotFoundError(DomainException):
    """Referenced bill does not exist"""

    pass


class TransactionNotFoundError(DomainException):
    """Referenced payment record does not exist"""

    pass
