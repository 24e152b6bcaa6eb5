"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Merchant or decision does not exist"""

    pass


class ValidationError(DomainException):
    """Malformed identifier or batch request outside allowed bounds"""

    pass


class RepositoryError(DomainException):
    """Merchant or decision store failed to read or write"""

    pass


class DeadlineExceededError(DomainException):
    """Write refused because its batch deadline already passed"""

    pass
