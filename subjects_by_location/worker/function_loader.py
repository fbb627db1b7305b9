"""
Job Function Loader
Loads the map, combiner, and reduce functions of an aggregation job,
either from an importable module or from a Python file on disk
"""

import importlib
import importlib.util
import os
import sys


class FunctionLoader:
    """Loads map/combiner/reduce functions from a job module"""

    def __init__(self, job: str):
        """
        Initialize the function loader

        Args:
            job: Dotted module name (e.g. 'subjects_by_location.jobs.per_key')
                 or path to a Python file defining the job functions
        """
        self.job = job
        self.module = None

    def load_module(self):
        """
        Load the job module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If a job file path doesn't exist
            ModuleNotFoundError: If a dotted job name can't be imported
        """
        if self.job.endswith(".py"):
            if not os.path.exists(self.job):
                raise FileNotFoundError(f"Job file not found: {self.job}")
            name = f"job_{os.path.splitext(os.path.basename(self.job))[0]}"
            spec = importlib.util.spec_from_file_location(name, self.job)
            module = importlib.util.module_from_spec(spec)
            sys.modules[name] = module
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(self.job)

        self.module = module
        return module

    def _get(self, name: str):
        if not self.module:
            self.load_module()

        if not hasattr(self.module, name):
            raise AttributeError(f"Job module {self.job} must define '{name}'")
        return getattr(self.module, name)

    def get_map_function(self):
        """Get map_function(key, record) from the job module."""
        return self._get("map_function")

    def get_reduce_function(self):
        """Get reduce_function(key, values) from the job module."""
        return self._get("reduce_function")

    def get_combiner_function(self):
        """
        Get combiner function from the job module

        Returns:
            The combiner_function callable, reduce_function when no combiner
            is declared, or None when the job opts out with
            `combiner_function = None`
        """
        if not self.module:
            self.load_module()

        if hasattr(self.module, "combiner_function"):
            return self.module.combiner_function
        return getattr(self.module, "reduce_function", None)
