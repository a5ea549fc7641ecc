import unittest

import numpy as np
from scipy.optimize import brentq

from stellarforge.exceptions import NonConvergence
from stellarforge.util.kepler import eccentric_anomaly, kepler_residual


class TestEccentricAnomaly(unittest.TestCase):
    def test_residual_over_grid(self):
        for e in np.linspace(0, 0.99, 12):
            for M in np.linspace(0, 2 * np.pi, 37, endpoint=False):
                E = eccentric_anomaly(M, e)
                residual = kepler_residual(E, M, e)
                self.assertLess(abs(residual), 1e-6, msg=f"e={e}, M={M}")

    def test_circular_orbit_is_identity(self):
        for M in [0.0, 0.3, np.pi, 5.0]:
            self.assertEqual(eccentric_anomaly(M, 0.0), M)

    def test_matches_bracketing_root_finder(self):
        for e in [0.1, 0.5, 0.9]:
            for M in [0.2, 1.0, 2.5, 4.0, 6.0]:
                ref = brentq(
                    lambda E: E - e * np.sin(E) - M, M - e - 1e-3, M + e + 1e-3
                )
                self.assertAlmostEqual(eccentric_anomaly(M, e), ref, places=6)

    def test_high_eccentricity_small_mean_anomaly(self):
        for M in [1e-6, 1e-3, 0.05, 0.141, 2 * np.pi - 1e-3]:
            E = eccentric_anomaly(M, 0.99)
            self.assertLess(abs(kepler_residual(E, M, 0.99)), 1e-6)

    def test_root_stays_within_eccentricity_of_mean_anomaly(self):
        for M in np.linspace(0, 2 * np.pi, 13, endpoint=False):
            E = eccentric_anomaly(M, 0.7)
            self.assertLessEqual(abs(E - M), 0.7 + 1e-12)

    def test_rejects_unbound_and_negative_eccentricity(self):
        with self.assertRaises(ValueError):
            eccentric_anomaly(1.0, 1.0)
        with self.assertRaises(ValueError):
            eccentric_anomaly(1.0, 1.5)
        with self.assertRaises(ValueError):
            eccentric_anomaly(1.0, -0.1)

    def test_iteration_cap_raises_with_estimate(self):
        with self.assertRaises(NonConvergence) as ctx:
            eccentric_anomaly(0.5, 0.9, max_iter=1)
        err = ctx.exception
        self.assertEqual(err.iterations, 1)
        self.assertTrue(np.isfinite(err.estimate))
        self.assertIsInstance(err, ArithmeticError)


if __name__ == "__main__":
    unittest.main()
