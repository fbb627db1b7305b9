"""
Exceptions raised by the subjects-by-location pipeline.

Malformed records and invalid keys are not errors: they are filtered
out before counting and never reach this hierarchy.
"""


class SubjectsByLocationError(Exception):
    """Base class for all pipeline failures"""


class ConfigurationError(SubjectsByLocationError):
    """Raised when run options are out of range or inconsistent"""


class SourceUnavailableError(SubjectsByLocationError):
    """Raised when the input source cannot be opened or read"""


class SinkWriteFailureError(SubjectsByLocationError):
    """Raised when formatted output cannot be persisted"""


class AggregationError(SubjectsByLocationError):
    """Raised when a map or reduce task of an aggregation fails"""


class ArenaOverflowError(SubjectsByLocationError):
    """Raised when a single group outgrows its arena"""

    def __init__(self, group: str, capacity: int):
        self.group = group
        self.capacity = capacity
        super().__init__(
            f"Arena for group '{group}' exceeded capacity of {capacity} subjects"
        )


class StrategyMismatchError(SubjectsByLocationError):
    """Raised when two strategies disagree on the same sample"""
