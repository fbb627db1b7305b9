"""
Unit tests for the record source and report sink
"""

import os
import zipfile
from unittest.mock import patch

import pytest

from subjects_by_location.errors import SinkWriteFailureError, SourceUnavailableError
from subjects_by_location.storage import REPORT_FILENAME, open_source, write_lines


class TestOpenSource:

    def test_reads_plain_file_lines(self, sample_input_file, sample_records):
        assert list(open_source(sample_input_file)) == sample_records

    def test_strips_windows_line_endings(self, temp_dir):
        path = os.path.join(temp_dir, 'crlf.csv')
        with open(path, 'wb') as f:
            f.write(b"a\tb\r\nc\td\r\n")

        assert list(open_source(path)) == ["a\tb", "c\td"]

    def test_reads_zip_archive(self, temp_dir, sample_records):
        path = os.path.join(temp_dir, '20160315.export.CSV.zip')
        with zipfile.ZipFile(path, 'w') as archive:
            archive.writestr('20160315.export.CSV', '\n'.join(sample_records[:3]) + '\n')

        assert list(open_source(path)) == sample_records[:3]

    def test_is_lazy(self, sample_input_file):
        records = open_source(sample_input_file)

        assert next(records) is not None

    def test_missing_file_is_fatal(self, temp_dir):
        with pytest.raises(SourceUnavailableError):
            list(open_source(os.path.join(temp_dir, 'missing.csv')))

    def test_corrupt_zip_is_fatal(self, temp_dir):
        path = os.path.join(temp_dir, 'broken.zip')
        with open(path, 'wb') as f:
            f.write(b"not a zip")

        with pytest.raises(SourceUnavailableError):
            list(open_source(path))


class TestWriteLines:

    def test_writes_report(self, temp_dir):
        directory = os.path.join(temp_dir, 'out', 'per_key')

        path = write_lines(directory, ["US 042 3", "FR 112 1"])

        assert path == os.path.join(directory, REPORT_FILENAME)
        with open(path) as f:
            assert f.read() == "US 042 3\nFR 112 1\n"
        assert os.listdir(directory) == [REPORT_FILENAME]

    def test_empty_report(self, temp_dir):
        path = write_lines(temp_dir, [])

        assert os.path.getsize(path) == 0

    def test_failure_leaves_no_partial_report(self, temp_dir):
        with patch('subjects_by_location.storage.os.replace', side_effect=OSError("disk full")):
            with pytest.raises(SinkWriteFailureError, match="disk full"):
                write_lines(temp_dir, ["US 042 3"])

        assert os.listdir(temp_dir) == []

    def test_unwritable_destination(self, temp_dir):
        blocker = os.path.join(temp_dir, 'file')
        open(blocker, 'w').close()

        with pytest.raises(SinkWriteFailureError):
            write_lines(os.path.join(blocker, 'sub'), ["x"])
