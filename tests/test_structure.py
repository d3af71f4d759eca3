
import unittest
import sys
import os

# Ensure the package root is in the path
plugin_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if plugin_dir not in sys.path:
    sys.path.insert(0, plugin_dir)


class TestPackageStructure(unittest.TestCase):
    def test_imports(self):
        """test that the main modules can be imported"""
        try:
            import models
            import path
            import steps
            import solver
            import graph
            import report
            import netlist
        except ImportError as e:
            self.fail(f"Failed to import Core Modules: {e}")

    def test_ambient_imports(self):
        try:
            import config
            import errors
            import logging_config
            import plotter
            import cli
        except ImportError as e:
            self.fail(f"Failed to import support modules: {e}")

    def test_errors_share_a_base(self):
        import errors
        for name in ('PointNotFoundError', 'MalformedMatrixError', 'SingularSystemError', 'InvalidPathError',
                     'InvalidCycleError', 'MissingComputationError', 'TraceOrderError',
                     'CircuitTooLargeError', 'NetlistError'):
            self.assertTrue(issubclass(getattr(errors, name), errors.CircuitError), name)


if __name__ == '__main__':
    unittest.main()
