"""
Pytest configuration and shared fixtures
"""

import os
import shutil
import tempfile

import pytest

from subjects_by_location.synthetic import make_malformed_record, make_record


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_records():
    """Known mix of valid, invalid and malformed records"""
    return [
        make_record("US", "042", 1),
        make_record("US", "042", 2),
        make_record("US", "190", 3),
        make_record("FR", "042", 4),
        make_record("FR", "112", 5),
        make_record("USA", "042", 6),   # truncates to 'U'
        make_record("-U", "042", 7),
        make_record("NA", "042", 8),
        make_malformed_record(9),
        "",
    ]


@pytest.fixture
def expected_counts():
    """Counts for sample_records as (location, subject) -> count"""
    return {
        ("US", "042"): 2,
        ("US", "190"): 1,
        ("FR", "042"): 1,
        ("FR", "112"): 1,
    }


@pytest.fixture
def sample_input_file(temp_dir, sample_records):
    """Write sample_records to an input file"""
    filepath = os.path.join(temp_dir, 'events.csv')
    with open(filepath, 'w') as f:
        f.write('\n'.join(sample_records) + '\n')
    return filepath


@pytest.fixture
def as_pairs():
    """Convert a Counter of CompositeKey into a dict of (location, subject) -> count"""
    def convert(counts):
        return {(key.location, key.subject): count for key, count in counts.items()}
    return convert
