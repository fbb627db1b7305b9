"""
Unit tests for FunctionLoader
"""

import os

import pytest

from subjects_by_location.jobs import GROUPED_JOB, PER_KEY_JOB
from subjects_by_location.synthetic import make_record
from subjects_by_location.worker.function_loader import FunctionLoader


class TestFunctionLoaderBasics:
    """Tests for basic loading functionality"""

    def test_loads_job_module_by_name(self):
        loader = FunctionLoader(PER_KEY_JOB)
        module = loader.load_module()

        assert hasattr(module, 'map_function')
        assert hasattr(module, 'reduce_function')
        assert hasattr(module, 'combiner_function')

    def test_loads_job_file(self, temp_dir):
        job_file = os.path.join(temp_dir, 'custom_job.py')
        with open(job_file, 'w') as f:
            f.write("def map_function(k, v):\n    yield (v, 1)\n\n"
                    "def reduce_function(k, values):\n    yield (k, sum(values))\n")

        loader = FunctionLoader(job_file)

        assert list(loader.get_map_function()(0, "x")) == [("x", 1)]

    def test_raises_error_for_nonexistent_file(self):
        loader = FunctionLoader('/nonexistent/file.py')

        with pytest.raises(FileNotFoundError):
            loader.load_module()

    def test_raises_error_for_unknown_module(self):
        loader = FunctionLoader('subjects_by_location.jobs.does_not_exist')

        with pytest.raises(ModuleNotFoundError):
            loader.load_module()

    def test_get_map_function_loads_module_automatically(self):
        loader = FunctionLoader(PER_KEY_JOB)
        map_func = loader.get_map_function()

        assert callable(map_func)
        assert loader.module is not None

    def test_raises_error_when_reduce_function_missing(self, temp_dir):
        invalid_file = os.path.join(temp_dir, 'invalid.py')
        with open(invalid_file, 'w') as f:
            f.write("def map_function(k, v):\n    yield (k, v)\n")

        loader = FunctionLoader(invalid_file)

        with pytest.raises(AttributeError, match="reduce_function"):
            loader.get_reduce_function()


class TestCombinerResolution:
    """Tests for combiner lookup"""

    def test_per_key_job_declares_combiner(self):
        combiner = FunctionLoader(PER_KEY_JOB).get_combiner_function()

        assert list(combiner("US_042", [2, 3])) == [("US_042", 5)]

    def test_grouped_job_opts_out_of_combining(self):
        assert FunctionLoader(GROUPED_JOB).get_combiner_function() is None

    def test_reduce_is_default_combiner(self, temp_dir):
        job_file = os.path.join(temp_dir, 'no_combiner.py')
        with open(job_file, 'w') as f:
            f.write("def map_function(k, v):\n    yield (v, 1)\n\n"
                    "def reduce_function(k, values):\n    yield (k, sum(values))\n")

        loader = FunctionLoader(job_file)

        assert loader.get_combiner_function() is loader.get_reduce_function()


class TestJobFunctions:
    """Tests for the functions the jobs define"""

    def test_per_key_map_emits_token(self):
        map_func = FunctionLoader(PER_KEY_JOB).get_map_function()

        assert list(map_func(0, make_record("US", "042"))) == [("US_042", 1)]
        assert list(map_func(1, make_record("USA", "042"))) == []

    def test_grouped_map_emits_location_subject(self):
        map_func = FunctionLoader(GROUPED_JOB).get_map_function()

        assert list(map_func(0, make_record("US", "042"))) == [("US", "042")]
        assert list(map_func(1, "too\tshort")) == []

    def test_grouped_reduce_counts_first_occurrence(self):
        reduce_func = FunctionLoader(GROUPED_JOB).get_reduce_function()

        results = list(reduce_func("US", ["042", "190", "042"]))

        assert results == [("US", {"042": 2, "190": 1})]
