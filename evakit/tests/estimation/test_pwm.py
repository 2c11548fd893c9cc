import numpy as np
import unittest
import evakit
import evakit.estimation as estimation
from evakit.errors import NonStationaryModelError
from evakit.model import BlockMaxima, ThresholdExceedance
from numpy.testing import assert_allclose
from scipy import stats


def isapprox(a, b, rtol):
    a, b = np.asarray(a, dtype=float), np.asarray(b, dtype=float)
    return np.linalg.norm(a - b) <= rtol * max(np.linalg.norm(a), np.linalg.norm(b))


class TestPWM(unittest.TestCase):
    @classmethod
    def setUpClass(self):
        rng = np.random.default_rng(2024)
        self.n = 10000
        self.gev = [1.0, 2.0, 0.1]
        self.y = stats.genextreme.rvs(
            c=-self.gev[2], loc=self.gev[0], scale=self.gev[1], size=self.n, random_state=rng
        )
        self.gpd = [1.0, 0.1]
        self.exceedances = stats.genpareto.rvs(
            c=self.gpd[1], scale=self.gpd[0], size=self.n, random_state=rng
        )
        self.x = rng.normal(size=self.n)

    def test_sample_pwm(self):
        x = np.array([3.0, 1.0, 2.0])
        b = estimation.sample_pwm(x, order=2)

        # b1 = sum((j - 1) / (n - 1) * x_(j)) / n
        assert_allclose(b, [2.0, (0.5 * 2.0 + 1.0 * 3.0) / 3, 3.0 / 3])

    def test_sample_pwm_too_short(self):
        with self.assertRaises(ValueError):
            estimation.sample_pwm([1.0, 2.0], order=2)

    def test_gev_pwm(self):
        params = estimation.gev_pwm(self.y)
        self.assertTrue(isapprox(params, self.gev, 0.05))

    def test_gpd_pwm(self):
        params = estimation.gpd_pwm(self.exceedances)
        self.assertTrue(isapprox(params, self.gpd, 0.05))

    def test_gevfitpwm(self):
        fm = evakit.gevfitpwm(self.y)
        theta = fm.theta

        self.assertIsInstance(fm, evakit.PwmEVA)
        self.assertTrue(
            isapprox([theta[0], np.exp(theta[1]), theta[2]], self.gev, 0.05)
        )

    def test_gpfitpwm(self):
        fm = evakit.gpfitpwm(self.exceedances)
        theta = fm.theta

        self.assertTrue(isapprox([np.exp(theta[0]), theta[1]], self.gpd, 0.05))

    def test_non_stationary(self):
        m = BlockMaxima(self.y, locationcov=[("x", self.x)])
        with self.assertRaises(NonStationaryModelError):
            estimation.pwm_estimate(m)

        m = ThresholdExceedance(self.exceedances, shapecov=[("x", self.x)])
        with self.assertRaises(NonStationaryModelError):
            evakit.fit_pwm(m)

    def test_bootstrap(self):
        fm = evakit.gevfitpwm(self.y[:500])
        thetas = fm.bootstrap(nboot=50, random_state=3)

        self.assertEqual(thetas.shape, (50, 3))
        assert_allclose(thetas, fm.bootstrap(nboot=50, random_state=3))

        interval = fm.cint(0.9, nboot=50, random_state=3)
        self.assertEqual(interval.shape, (3, 2))
        self.assertTrue(np.all(interval[:, 0] <= interval[:, 1]))
        self.assertEqual(fm.parametervar(nboot=50, random_state=3).shape, (3, 3))

        with self.assertRaises(ValueError):
            fm.bootstrap(nboot=1)


if __name__ == "__main__":
    unittest.main()
