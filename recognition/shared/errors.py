"""
Domain errors raised inside recognition adapters.

These never reach callers of the pipeline; they are caught at the
pipeline boundary and turned into degraded results.
"""


class RecognitionError(Exception):
    """Base class for recognition failures."""


class RecognizerNotConfiguredError(RecognitionError):
    """The remote recognizer has no usable credentials."""


class DatasetError(RecognitionError):
    """A stored dataset could not be read or written."""
