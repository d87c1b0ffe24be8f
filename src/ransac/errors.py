"""
Exception hierarchy for the line-fit analysis.
"""


class LineFitError(Exception):
    """Base class for all line-fit failures."""


class DegenerateSampleError(LineFitError):
    """Two sample points share a timestamp, so no finite slope exists."""


class SamplingError(LineFitError):
    """A sample source cannot produce valid index pairs for the dataset."""


class DataLoadError(LineFitError):
    """The input table is missing, unreadable or lacks the expected columns."""
