"""
Field extraction and composite key validation for GDELT event records.

A record is one tab-delimited line of an event export. Only two columns
matter here: the event code (subject) and the action geo country code
(location).
"""

import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

NA = "NA"

SUBJECT_FIELD = 6
LOCATION_FIELD = 21
MIN_FIELDS = 23
LOCATION_LENGTH = 2
KEY_SEPARATOR = "_"

_TAB_RUNS = re.compile(r"\t+")


class ExtractedFields(NamedTuple):
    """Location and subject codes pulled out of one record"""
    location: str
    subject: str


@dataclass(frozen=True)
class CompositeKey:
    """A validated (location, subject) pair"""
    location: str
    subject: str

    @property
    def token(self) -> str:
        """Grouping token used for hashing and intermediate files."""
        return f"{self.location}{KEY_SEPARATOR}{self.subject}"

    @classmethod
    def from_token(cls, token: str) -> "CompositeKey":
        """
        Rebuild a key from its token.

        Locations are always LOCATION_LENGTH characters, so the separator
        sits at a fixed offset even when either code contains one.
        """
        if token[LOCATION_LENGTH:LOCATION_LENGTH + 1] != KEY_SEPARATOR:
            raise ValueError(f"Malformed key token: {token!r}")
        return cls(token[:LOCATION_LENGTH], token[LOCATION_LENGTH + 1:])

    def __str__(self):
        return self.token


def split_fields(record: str) -> List[str]:
    """
    Split a record on runs of tabs.

    Trailing empty fields are dropped, so a record ending with a tab has
    the same field count as the record without it.
    """
    fields = _TAB_RUNS.split(record.rstrip("\r\n"))
    while fields and not fields[-1]:
        fields.pop()
    return fields


def extract_fields(record: str) -> ExtractedFields:
    """
    Extract the location and subject codes from a raw record.

    Args:
        record: One line of the event feed

    Returns:
        ExtractedFields, with both codes set to NA when the record has
        fewer than MIN_FIELDS fields
    """
    fields = split_fields(record)
    if len(fields) < MIN_FIELDS:
        return ExtractedFields(NA, NA)

    location = fields[LOCATION_FIELD]
    # Multi-character codes beyond two letters carry the region in the first character
    if len(location) > LOCATION_LENGTH:
        location = location[:1]

    subject = fields[SUBJECT_FIELD] or NA
    return ExtractedFields(location, subject)


def is_valid(fields: ExtractedFields) -> bool:
    location, subject = fields
    return (
        location != NA
        and subject != NA
        and len(location) == LOCATION_LENGTH
        and not location.startswith("-")
    )


def build_key(fields: ExtractedFields) -> Optional[CompositeKey]:
    """
    Combine extracted codes into a composite key.

    Returns:
        The CompositeKey, or None when the codes fail validation
    """
    if not is_valid(fields):
        return None
    return CompositeKey(fields.location, fields.subject)


def composite_key(record: str) -> Optional[CompositeKey]:
    """Extract and validate in one step."""
    return build_key(extract_fields(record))
