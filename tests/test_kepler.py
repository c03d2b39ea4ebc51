"""
Tests for the Kepler Solver and Angle Utilities

Run with:
    python -m pytest tests/test_kepler.py -v
"""

import math
import unittest

import numpy as np

from orbit_propagator.constants import PI, PIO2, TWOPI, X3PIO2
from orbit_propagator.elements import ElementSet
from orbit_propagator.exceptions import PropagationError
from orbit_propagator.kepler import (
    MeanElements,
    actan,
    eccentric_anomaly,
    fmod2p,
    reconstruct_state,
    solve_kepler,
)
from orbit_propagator.near_earth import initialize


class TestAngleUtilities(unittest.TestCase):
    """actan and fmod2p."""

    def test_actan_axes(self):
        self.assertEqual(actan(0.0, 1.0), 0.0)
        self.assertEqual(actan(0.0, 0.0), 0.0)
        self.assertEqual(actan(1.0, 0.0), PIO2)
        self.assertEqual(actan(-1.0, 0.0), X3PIO2)
        self.assertAlmostEqual(actan(0.0, -1.0), PI)

    def test_actan_quadrants(self):
        self.assertAlmostEqual(actan(1.0, 1.0), math.pi / 4.0)
        self.assertAlmostEqual(actan(1.0, -1.0), PI - math.pi / 4.0, places=7)
        self.assertAlmostEqual(actan(-1.0, -1.0), PI + math.pi / 4.0, places=7)
        self.assertAlmostEqual(actan(-1.0, 1.0), TWOPI - math.pi / 4.0, places=7)

    def test_fmod2p(self):
        self.assertAlmostEqual(fmod2p(-0.5), TWOPI - 0.5)
        self.assertAlmostEqual(fmod2p(7.0), 7.0 - TWOPI)
        self.assertAlmostEqual(fmod2p(3.0 * TWOPI + 1.0), 1.0, places=9)
        for x in (-100.0, -1e-9, 0.0, 2.0, 1e4):
            with self.subTest(x=x):
                value = fmod2p(x)
                self.assertGreaterEqual(value, 0.0)
                self.assertLessEqual(value, TWOPI)


class TestKeplerSolver(unittest.TestCase):
    """Convergence and detectable non-convergence."""

    ECCENTRICITIES = [0.0, 0.1, 0.3, 0.5, 0.7, 0.9]
    MEAN_ANOMALIES = [0.0, 0.5, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0]

    def test_converges_below_cap(self):
        for e in self.ECCENTRICITIES:
            for m in self.MEAN_ANOMALIES:
                with self.subTest(e=e, M=m):
                    sol = eccentric_anomaly(m, e)
                    self.assertTrue(sol.converged)
                    self.assertLessEqual(sol.iterations, 10)
                    residual = sol.epw - e * math.sin(sol.epw) - fmod2p(m)
                    self.assertLess(abs(residual), 1e-6)

    def test_circular_orbit_is_immediate(self):
        sol = eccentric_anomaly(1.234, 0.0)
        self.assertTrue(sol.converged)
        self.assertEqual(sol.iterations, 1)
        self.assertAlmostEqual(sol.epw, 1.234)

    def test_non_convergence_is_reported(self):
        sol = eccentric_anomaly(0.5, 0.9, max_iterations=1)
        self.assertFalse(sol.converged)
        self.assertEqual(sol.iterations, 1)
        self.assertTrue(math.isfinite(sol.epw))

    def test_trig_values_of_last_evaluated_estimate(self):
        capu = 2.0
        sol = solve_kepler(capu, 0.6, 0.2, max_iterations=1)
        self.assertEqual(sol.sin_epw, math.sin(capu))
        self.assertEqual(sol.cos_epw, math.cos(capu))
        self.assertNotEqual(sol.epw, capu)

    def test_equinoctial_form(self):
        # capu = E - axn*sin(E) + ayn*cos(E)
        axn, ayn, capu = 0.3, -0.2, 4.0
        sol = solve_kepler(capu, axn, ayn)
        self.assertTrue(sol.converged)
        e = sol.epw
        self.assertAlmostEqual(e - axn * math.sin(e) + ayn * math.cos(e), capu, places=6)

    def test_invalid_cap(self):
        with self.assertRaises(ValueError):
            solve_kepler(1.0, 0.1, 0.0, max_iterations=0)


class TestReconstruction(unittest.TestCase):
    """Coordinate reconstruction from mean elements."""

    def setUp(self):
        self.elements = ElementSet(
            epoch=80275.98708465, mean_motion=16.05824518, eccentricity=0.0086731,
            inclination=72.8435, raan=115.9689, arg_perigee=52.6988,
            mean_anomaly=110.5714, bstar=0.66816e-4, satnum=88888,
        )
        self.consts = initialize(self.elements.to_working_units())

    def test_state_is_finite_and_near_orbit_radius(self):
        w = self.elements.to_working_units()
        mean = MeanElements(
            a=self.consts.aodp, e=w.eo, incl=w.xincl, argp=w.omegao,
            node=w.xnodeo, xl=w.xmo + w.omegao + w.xnodeo,
        )
        state = reconstruct_state(mean, self.consts)
        self.assertTrue(np.all(np.isfinite(state.position)))
        self.assertTrue(np.all(np.isfinite(state.velocity)))
        radius = np.linalg.norm(state.position)
        self.assertGreater(radius, self.consts.aodp * (1.0 - w.eo) - 0.01)
        self.assertLess(radius, self.consts.aodp * (1.0 + w.eo) + 0.01)
        self.assertTrue(state.kepler.converged)

    def test_unbound_elements_raise(self):
        for a, e in ((1.05, 1.0), (1.05, -1.2), (-1.0, 0.1), (0.0, 0.1)):
            with self.subTest(a=a, e=e):
                mean = MeanElements(a=a, e=e, incl=0.5, argp=0.1, node=0.2, xl=1.0)
                with self.assertRaises(PropagationError):
                    reconstruct_state(mean, self.consts)


if __name__ == "__main__":
    unittest.main()
