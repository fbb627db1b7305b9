"""
Grouped event count.

Subjects are shuffled to the reducer owning their location and held there,
all of them, before any counting happens. Kept to show what that costs next
to the per-key job.
"""

from ..records import extract_fields, is_valid

# Nothing can be pre-aggregated before the group exists
combiner_function = None


def map_function(key, record):
    """
    Map function: emit (location, subject) for a record whose codes validate.

    Args:
        key: Position of the record in the sample (unused)
        record: Raw event line

    Yields:
        (location, subject) tuples
    """
    fields = extract_fields(record)
    if is_valid(fields):
        yield (fields.location, fields.subject)


def reduce_function(key, values):
    """
    Reduce function: count subjects of one fully materialized location group.

    Args:
        key: Location code
        values: Every subject emitted for the location

    Yields:
        (location, {subject: count}) tuple
    """
    events_by_subject = {}
    for subject in values:
        events_by_subject[subject] = events_by_subject.get(subject, 0) + 1
    yield (key, events_by_subject)
