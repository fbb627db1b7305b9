"""
Per-key event count.

Each record becomes at most one (location_subject, 1) pair. Counts are
pre-aggregated inside every map task, so the shuffle moves one partial
count per distinct key per map task instead of one pair per record.
"""

from ..records import composite_key


def map_function(key, record):
    """
    Map function: emit (key token, 1) for a record with a valid composite key.

    Args:
        key: Position of the record in the sample (unused)
        record: Raw event line

    Yields:
        (location_subject, 1) tuples
    """
    composite = composite_key(record)
    if composite is not None:
        yield (composite.token, 1)


def reduce_function(key, values):
    """
    Reduce function: sum partial counts for a key.

    Yields:
        (location_subject, total_count) tuple
    """
    yield (key, sum(values))


def combiner_function(key, values):
    """Combiner function: local per-key count, same as reduce."""
    yield (key, sum(values))
