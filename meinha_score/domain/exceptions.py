"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidDateError(DomainException):
    """A debt date is missing or cannot be parsed"""

    pass


class InvalidRuleConfigurationError(DomainException):
    """Score rule configuration has unknown fields or invalid values"""

    pass


class OverrideNotAllowedError(DomainException):
    """Payment timing can only be overridden on paid debts"""

    pass
