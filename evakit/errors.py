"""
Exceptions raised by evakit.

Validation errors derive from ``ValueError`` and are raised before any
numerical work is started. Numerical errors derive from ``RuntimeError``
and report a fit that cannot be completed (optimizer failure, singular
information matrix). None of them is retried.
"""


class EVAError(Exception):
    pass


class InvalidProbabilityError(EVAError, ValueError):
    pass


class InvalidLevelError(EVAError, ValueError):
    pass


class InvalidPeriodError(EVAError, ValueError):
    pass


class CovariateLengthError(EVAError, ValueError):
    pass


class DegenerateCovariateError(EVAError, ValueError):
    pass


class NonStationaryModelError(EVAError, ValueError):
    pass


class InvalidIterationBudgetError(EVAError, ValueError):
    pass


class ConvergenceError(EVAError, RuntimeError):
    pass


class SingularInformationError(EVAError, RuntimeError):
    pass
