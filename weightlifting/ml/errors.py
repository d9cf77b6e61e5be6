"""
errors.py — Pipeline Exception Types
=====================================

Every failure halts report generation; there are no recovery paths.
The types only tell the operator which stage broke.
"""


class PipelineError(RuntimeError):
    """Base class for all report pipeline failures."""


class DataError(PipelineError):
    """
    Raised for missing / malformed columns, empty tables or a source
    that could not be downloaded or parsed.
    """


class DegenerateSplitError(DataError):
    """
    Raised when a label class is too small for a stratified split or
    fold assignment.  Records are never duplicated to make up the count.
    """


class TrainingError(PipelineError):
    """Raised when a classifier fails to fit.  No retry, no fallback."""
