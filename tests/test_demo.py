"""
Tests for the Demo Driver and Logging Setup

Run with:
    python -m pytest tests/test_demo.py -v
"""

import logging
import os
import tempfile
import unittest

from config import (
    DEEP_SPACE_POSITION_TOLERANCE_KM,
    POSITION_TOLERANCE_KM,
    SDP4_TEST_TLE,
    SGP4_TEST_TLE,
    SWEEP_END_MIN,
    SWEEP_START_MIN,
)
from demo import compare_with_reference, sweep
from logging_config import PACKAGE_LOGGER, configure_logging, get_logger


class TestDemo(unittest.TestCase):
    """Reference comparison and sweep helpers."""

    def test_compare_with_reference(self):
        for satellite, tolerance in (
            (SGP4_TEST_TLE, POSITION_TOLERANCE_KM),
            (SDP4_TEST_TLE, DEEP_SPACE_POSITION_TOLERANCE_KM),
        ):
            with self.subTest(satellite=satellite["name"]):
                errors = compare_with_reference(satellite)
                self.assertEqual(len(errors), 5)
                self.assertTrue(all(dr < tolerance for _, dr, _ in errors))

    def test_sweep(self):
        times, positions = sweep(SGP4_TEST_TLE, 60.0)
        self.assertEqual(times[0], SWEEP_START_MIN)
        self.assertEqual(times[-1], SWEEP_END_MIN)
        self.assertEqual(positions.shape, (len(times), 3))


class TestLoggingConfig(unittest.TestCase):
    """Handler installation and per-package levels."""

    def tearDown(self):
        configure_logging(level=logging.WARNING)

    def test_configure_with_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "propagator.log")
            configure_logging(level=logging.DEBUG, log_file=path)
            get_logger("orbit_propagator.test").debug("session initialized")
            for handler in logging.getLogger().handlers:
                handler.flush()
            with open(path) as f:
                self.assertIn("session initialized", f.read())
            for handler in list(logging.getLogger().handlers):
                if isinstance(handler, logging.FileHandler):
                    handler.close()
                    logging.getLogger().removeHandler(handler)

    def test_propagator_level_is_separate(self):
        configure_logging(level=logging.DEBUG, propagator_level=logging.WARNING)
        self.assertEqual(logging.getLogger().level, logging.DEBUG)
        self.assertFalse(logging.getLogger("orbit_propagator.deep_space").isEnabledFor(logging.DEBUG))
        self.assertTrue(logging.getLogger("orbit_propagator.propagator").isEnabledFor(logging.WARNING))
        self.assertTrue(get_logger("demo").isEnabledFor(logging.DEBUG))

    def test_propagator_level_defaults_to_level(self):
        configure_logging(level=logging.INFO)
        self.assertEqual(logging.getLogger(PACKAGE_LOGGER).level, logging.INFO)

    def test_plotting_loggers_quiet(self):
        configure_logging(level=logging.DEBUG)
        self.assertEqual(logging.getLogger("matplotlib").level, logging.WARNING)

    def test_get_logger(self):
        self.assertEqual(get_logger("orbit_propagator").name, "orbit_propagator")


if __name__ == "__main__":
    unittest.main()
