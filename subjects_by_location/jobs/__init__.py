"""Aggregation jobs, one module per strategy."""

PER_KEY_JOB = "subjects_by_location.jobs.per_key"
GROUPED_JOB = "subjects_by_location.jobs.grouped"
