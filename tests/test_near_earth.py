"""
Tests for the Near-Earth Secular Model

Tests recovery of the original mean motion, the perigee-dependent drag-shape
clamp, the simplified-drag flag and model selection by period.

Run with:
    python -m pytest tests/test_near_earth.py -v
"""

import math
import unittest

from orbit_propagator.constants import AE, QOMS2T, S, TWOPI, XKMPER
from orbit_propagator.elements import ElementSet
from orbit_propagator.near_earth import initialize, mean_elements, secular_drift


def make_elements(mean_motion, eccentricity, inclination=51.6, bstar=1.0e-4, epoch=24001.5):
    return ElementSet(
        epoch=epoch,
        mean_motion=mean_motion,
        eccentricity=eccentricity,
        inclination=inclination,
        raan=30.0,
        arg_perigee=60.0,
        mean_anomaly=90.0,
        bstar=bstar,
    )


NEAR_EARTH = ElementSet(
    epoch=80275.98708465, mean_motion=16.05824518, eccentricity=0.0086731,
    inclination=72.8435, raan=115.9689, arg_perigee=52.6988,
    mean_anomaly=110.5714, ndot=0.00073094, nddot=0.13844e-3,
    bstar=0.66816e-4, satnum=88888,
)
DEEP_SPACE = ElementSet(
    epoch=80230.29629788, mean_motion=2.28537848, eccentricity=0.7318036,
    inclination=46.7916, raan=230.4354, arg_perigee=47.4722,
    mean_anomaly=10.4117, ndot=0.01431103, bstar=0.14311e-1, satnum=11801,
)


class TestInitialization(unittest.TestCase):
    """Derived constants of the reference element sets."""

    def test_near_earth_reference(self):
        c = initialize(NEAR_EARTH.to_working_units())
        self.assertFalse(c.deep_space)
        self.assertAlmostEqual(c.period_minutes, 89.7, delta=0.3)
        # perigee about 200 km: simplified drag, no clamp
        self.assertGreater(c.perigee_km, 156.0)
        self.assertLess(c.perigee_km, 220.0)
        self.assertTrue(c.isimp)
        self.assertFalse(c.drag_floor_engaged)
        self.assertEqual(c.s4, S)
        self.assertEqual(c.qoms24, QOMS2T)
        self.assertEqual(c.d2, 0.0)
        self.assertGreater(c.c1, 0.0)

    def test_deep_space_reference(self):
        c = initialize(DEEP_SPACE.to_working_units())
        self.assertTrue(c.deep_space)
        self.assertGreaterEqual(c.period_minutes, 225.0)

    def test_recovered_mean_motion(self):
        w = NEAR_EARTH.to_working_units()
        c = initialize(w)
        # above 54.7 deg inclination the J2 correction raises the mean motion
        self.assertAlmostEqual(c.xnodp / w.xno, 1.0, delta=1e-3)
        self.assertGreater(c.xnodp, w.xno)

    def test_full_drag_terms_above_220_km(self):
        c = initialize(make_elements(15.5, 0.0005).to_working_units())
        self.assertFalse(c.isimp)
        self.assertNotEqual(c.d2, 0.0)
        self.assertNotEqual(c.t3cof, 0.0)

    def test_low_eccentricity_skips_eccentricity_terms(self):
        c = initialize(make_elements(15.5, 0.00005).to_working_units())
        self.assertEqual(c.c3, 0.0)
        self.assertEqual(c.xmcof, 0.0)
        self.assertEqual(c.omgcof, 0.0)

    def test_equatorial_retrograde_is_finite(self):
        c = initialize(make_elements(15.5, 0.001, inclination=180.0).to_working_units())
        self.assertTrue(math.isfinite(c.xlcof))


class TestPerigeeClamp(unittest.TestCase):
    """Drag-shape parameter below 156 km and the 98 km floor."""

    def test_clamp_between_98_and_156_km(self):
        c = initialize(make_elements(16.4, 0.005).to_working_units())
        self.assertGreater(c.perigee_km, 98.0)
        self.assertLess(c.perigee_km, 156.0)
        self.assertFalse(c.drag_floor_engaged)
        self.assertAlmostEqual(c.s4, (c.perigee_km - 78.0) / XKMPER + AE, places=12)
        self.assertLess(c.s4, S)
        self.assertNotEqual(c.qoms24, QOMS2T)

    def test_floor_at_or_below_98_km(self):
        c = initialize(make_elements(16.5, 0.01).to_working_units())
        self.assertLessEqual(c.perigee_km, 98.0)
        self.assertTrue(c.drag_floor_engaged)
        self.assertAlmostEqual(c.s4, 20.0 / XKMPER + AE, places=12)
        expected = ((120.0 - 20.0) * AE / XKMPER) ** 4
        self.assertAlmostEqual(c.qoms24, expected, places=18)


class TestSecularUpdate(unittest.TestCase):
    """SGP4 secular gravity and drag."""

    def setUp(self):
        self.w = NEAR_EARTH.to_working_units()
        self.c = initialize(self.w)

    def test_epoch_values(self):
        drift = secular_drift(self.c, self.w, 0.0)
        self.assertEqual(drift.xmdf, self.w.xmo)
        self.assertEqual(drift.omgadf, self.w.omegao)
        self.assertEqual(drift.xnode, self.w.xnodeo)
        self.assertEqual(drift.tempa, 1.0)

        mean = mean_elements(self.c, self.w, 0.0)
        self.assertAlmostEqual(mean.a, self.c.aodp, places=12)
        self.assertAlmostEqual(mean.e, self.w.eo, places=12)
        self.assertEqual(mean.incl, self.w.xincl)
        self.assertAlmostEqual(mean.xl, self.w.xmo + self.w.omegao + self.w.xnodeo, places=12)

    def test_drag_lowers_semi_major_axis(self):
        a0 = mean_elements(self.c, self.w, 0.0).a
        a1 = mean_elements(self.c, self.w, 1440.0).a
        self.assertLess(a1, a0)

    def test_node_regresses_for_prograde_orbit(self):
        self.assertLess(self.c.xnodot, 0.0)
        node = mean_elements(self.c, self.w, 1440.0).node
        self.assertLess(node, self.w.xnodeo)

    def test_period_matches_recovered_mean_motion(self):
        self.assertAlmostEqual(self.c.period_minutes, TWOPI / self.c.xnodp)


if __name__ == "__main__":
    unittest.main()
