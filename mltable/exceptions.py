"""
Exception hierarchy for mltable.

Validation problems are detected before any statistic is computed; computation
problems are raised when one of the underlying statistics libraries cannot
produce a value for the requested input.
"""


class MltableError(Exception):
    """Base class for all errors raised by mltable."""


class ValidationError(MltableError, ValueError):
    """Input data or configuration violates a precondition."""


class ComputationError(MltableError, RuntimeError):
    """A correlation, reliability or agreement statistic could not be computed."""
