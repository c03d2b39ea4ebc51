"""
Cross-Validation Against the sgp4 Library

Compares both models with the sgp4 package (Vallado et al. 2006) using the
WGS-72 (old) constants that Spacetrack Report #3 uses. That library includes
corrections made after 1980, in particular for the deep-space periodic terms,
so the deep-space tolerance is wider than the near-Earth one.

Run with:
    python -m pytest tests/test_cross_validation.py -v
"""

import unittest

import numpy as np
from sgp4.api import WGS72OLD, Satrec

from config import SDP4_TEST_TLE, SGP4_TEST_TLE
from orbit_propagator import Propagator
from orbit_propagator.deep_space import ResonanceKind

TIMES_MIN = [0.0, 360.0, 720.0, 1080.0, 1440.0, -720.0]
RESONANT_TIMES_MIN = [-2880.0, -1440.0, 0.0, 1440.0, 4320.0, 10080.0]

LINE1_11801 = SDP4_TEST_TLE["line1"]
LINE2_11801 = SDP4_TEST_TLE["line2"]

# Molniya-type orbit: half-day resonant
LINE1_MOLNIYA = "1 40296U          15001.00000000  .00000000  00000-0  10000-3      05"
LINE2_MOLNIYA = "2 40296  62.8000 250.0000 7000000 270.0000  20.0000  2.00580000    10"

# Near-geostationary orbit: one-day synchronous
LINE1_GEO = "1 33333U          15001.00000000  .00000000  00000-0  00000-0      05"
LINE2_GEO = "2 33333   0.0500 100.0000 0000100  90.0000 270.0000  1.00273791    13"

# Half-day resonant, e = 0.71
LINE1_09880 = "1 09880U 77021A   06176.56157475  .00000421  00000-0  10000-3 0  9814"
LINE2_09880 = "2 09880  64.5968 349.3786 7069051 270.0229  16.3320  2.00813614112380"

# Eccentric, inclination below 0.2 rad, node near zero at epoch
LINE1_23599 = "1 23599U 95029B   06171.76535463  .00085586  12891-6  12956-2 0  2905"
LINE2_23599 = "2 23599   6.9327   0.2849 5782022 274.4436  25.2425  4.47796565123555"


class TestAgainstSgp4Library(unittest.TestCase):
    """Position agreement with an independent implementation."""

    def compare(self, satellite, tolerance_km):
        sat = Satrec.twoline2rv(satellite["line1"], satellite["line2"], WGS72OLD)
        prop = Propagator.from_tle(satellite["line1"], satellite["line2"])
        for tsince in TIMES_MIN:
            with self.subTest(tsince=tsince):
                error, r_ref, _ = sat.sgp4(sat.jdsatepoch, sat.jdsatepochF + tsince / 1440.0)
                self.assertEqual(error, 0)
                result = prop.propagate(tsince)
                dr = np.linalg.norm(result.position_km - np.array(r_ref))
                self.assertLess(dr, tolerance_km, f"{dr:.3f} km from sgp4 at t={tsince}")

    def test_near_earth(self):
        self.compare(SGP4_TEST_TLE, 5.0)

    def test_deep_space(self):
        self.compare(SDP4_TEST_TLE, 100.0)

    def test_epoch_julian_day(self):
        sat = Satrec.twoline2rv(SGP4_TEST_TLE["line1"], SGP4_TEST_TLE["line2"], WGS72OLD)
        prop = Propagator.from_tle(SGP4_TEST_TLE["line1"], SGP4_TEST_TLE["line2"])
        self.assertAlmostEqual(prop.elements.epoch_jd, sat.jdsatepoch + sat.jdsatepochF, places=6)


class TestDeepSpaceAgainstSgp4Library(unittest.TestCase):
    """
    Resonant, low-inclination and retrograde deep-space orbits.

    A fresh session per query time, so the resonance integrator starts from
    epoch for every query as it does in the sgp4 package.
    """

    def compare_fresh(self, line1, line2, times, tolerance_km):
        sat = Satrec.twoline2rv(line1, line2, WGS72OLD)
        for tsince in times:
            with self.subTest(tsince=tsince):
                error, r_ref, _ = sat.sgp4(sat.jdsatepoch, sat.jdsatepochF + tsince / 1440.0)
                self.assertEqual(error, 0)
                result = Propagator.from_tle(line1, line2).propagate(tsince)
                dr = np.linalg.norm(result.position_km - np.array(r_ref))
                self.assertLess(dr, tolerance_km, f"{dr:.3f} km from sgp4 at t={tsince}")

    def test_synchronous(self):
        self.compare_fresh(LINE1_GEO, LINE2_GEO, RESONANT_TIMES_MIN, 20.0)

    def test_half_day(self):
        for line1, line2 in ((LINE1_MOLNIYA, LINE2_MOLNIYA), (LINE1_09880, LINE2_09880)):
            with self.subTest(satnum=line1[2:7]):
                prop = Propagator.from_tle(line1, line2)
                self.assertEqual(prop.deep_space.kind, ResonanceKind.HALF_DAY)
                self.compare_fresh(line1, line2, RESONANT_TIMES_MIN, 100.0)

    def test_low_inclination_node_crossing(self):
        # the ascending node regresses through zero a little before t = 420 min
        self.compare_fresh(LINE1_23599, LINE2_23599, np.arange(0.0, 721.0, 20.0), 100.0)

    def test_near_retrograde_equatorial(self):
        line2 = LINE2_11801[:8] + "179.0000" + LINE2_11801[16:]
        self.compare_fresh(LINE1_11801, line2, [0.0, 720.0, 1440.0], 100.0)


if __name__ == "__main__":
    unittest.main()
