class FintrackError(Exception):
    """Base class for domain errors raised by services."""


class NotFoundError(FintrackError):
    pass


class DomainRuleError(FintrackError):
    """The request is well-formed but breaks a business rule."""


class DuplicateOccurrenceError(FintrackError):
    """A series already has a row on one of the requested dates."""


class PeriodLockedError(DomainRuleError):
    """A transaction date falls inside a locked period closure."""
