"""
Exception and warning types raised by virodiv.

Computational degeneracies raise at the point they are detected. A bad
reference identifier is recovered with a default and reported through
ReferenceOptionWarning. Aligner or reference unavailability always propagates.
"""


class VirodivError(Exception):
    """Base class for all virodiv errors."""


class InputError(VirodivError):
    """A sequence file is missing or unreadable."""


class AlignmentLengthError(VirodivError, ValueError):
    """A position-wise operation received sequences of unequal length."""


class DegenerateInputError(VirodivError, ValueError):
    """A statistic is undefined for the given input."""


class EmptyInputError(DegenerateInputError):
    """An operation that needs at least one sequence received none."""


class AlignmentUnavailableError(VirodivError, RuntimeError):
    """The aligner or the reference sequence it needs could not be used."""


class ReferenceOptionWarning(UserWarning):
    """An unrecognized reference genome was replaced by the default."""
