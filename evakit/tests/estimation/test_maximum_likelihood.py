from os.path import abspath, dirname, join, normpath
import numpy as np
import pandas as pd
import unittest
import evakit
import evakit.estimation as estimation
from evakit.errors import ConvergenceError, SingularInformationError
from evakit.model import BlockMaxima, ThresholdExceedance
from numpy.testing import assert_allclose
from scipy import stats


testdir = dirname(abspath(__file__))
datadir = normpath(join(testdir, "..", "data"))


def isapprox(a, b, rtol):
    a, b = np.asarray(a, dtype=float), np.asarray(b, dtype=float)
    return np.linalg.norm(a - b) <= rtol * max(np.linalg.norm(a), np.linalg.norm(b))


class TestPortPirie(unittest.TestCase):
    """Port Pirie annual maximum sea levels, Coles (2001), Chapter 3."""

    @classmethod
    def setUpClass(self):
        df = pd.read_csv(join(datadir, "portpirie.csv"))
        self.y = df["SeaLevel"].to_numpy()
        self.fm = evakit.gevfit(self.y)

    def test_parameters(self):
        theta = [3.87, np.log(0.198), -0.050]
        self.assertTrue(isapprox(self.fm.theta, theta, 0.1))

    def test_covariance(self):
        V = np.array(
            [
                [0.000780, 0.000197, -0.00107],
                [0.000197, 0.000410, -0.000778],
                [-0.00107, -0.000778, 0.00965],
            ]
        )
        # Delta method: covariance of (mu, sigma, xi) from that of
        # (mu, log sigma, xi).
        s = np.exp(self.fm.theta[1])
        c = np.array([[1.0, s, 1.0], [s, s**2, s], [1.0, s, 1.0]])

        self.assertTrue(isapprox(c * self.fm.parametervar(), V, 0.1))

    def test_loglikelihood(self):
        assert_allclose(self.fm.loglikelihood(), 4.34, rtol=0.1)

    def test_cint(self):
        interval = self.fm.cint(0.95)

        self.assertEqual(interval.shape, (3, 2))
        self.assertTrue(np.all(interval[:, 0] < self.fm.theta))
        self.assertTrue(np.all(self.fm.theta < interval[:, 1]))

    def test_dataframe_input(self):
        df = pd.read_csv(join(datadir, "portpirie.csv"))
        fm = evakit.gevfit(df, "SeaLevel")

        self.assertEqual(fm.model.data.name, "SeaLevel")
        assert_allclose(fm.theta, self.fm.theta, rtol=1e-6, atol=1e-8)


class TestMaximumLikelihood(unittest.TestCase):
    @classmethod
    def setUpClass(self):
        rng = np.random.default_rng(11)
        self.n = 5000
        self.x1 = rng.normal(size=self.n) / 3
        self.x2 = rng.normal(size=self.n) / 3

        logscale = -0.5 + self.x1 + self.x2
        self.gpd_theta = [-0.5, 1.0, 1.0, 0.1]
        self.exceedances = stats.genpareto.rvs(
            c=0.1, scale=np.exp(logscale), random_state=rng
        )

        self.t = np.arange(self.n, dtype=float)
        self.gev_theta = [10.0, 0.001, np.log(2.0), 0.1]
        self.y = stats.genextreme.rvs(
            c=-0.1, loc=10.0 + 0.001 * self.t, scale=2.0, random_state=rng
        )

    def test_initial_value(self):
        m = BlockMaxima(self.y)
        theta0 = estimation.getinitialvalue(m)

        sigma = np.sqrt(6 * np.var(self.y)) / np.pi
        assert_allclose(theta0[1], np.log(sigma))
        assert_allclose(theta0[0], np.mean(self.y) - 0.5772156649015329 * sigma)
        self.assertEqual(theta0[2], 0.0)

    def test_gpd_with_covariates(self):
        fm = evakit.gpfit(
            self.exceedances, logscalecov=[("x1", self.x1), ("x2", self.x2)]
        )

        self.assertEqual(fm.model.parameter_names(), ["logscale", "logscale_x1", "logscale_x2", "shape"])
        self.assertTrue(isapprox(fm.theta, self.gpd_theta, 0.1))

        interval = fm.cint(0.95)
        self.assertTrue(np.all(interval[:, 0] < fm.theta))
        self.assertTrue(np.all(fm.theta < interval[:, 1]))

    def test_gev_with_raw_trend(self):
        # The trend covariate is far from standardized; the fit is done on
        # the standardized scale and mapped back.
        fm = evakit.gevfit(self.y, locationcov=[("t", self.t)])

        self.assertFalse(fm.model.covariates("location")[0].isstandardized())
        self.assertTrue(isapprox(fm.theta, self.gev_theta, 0.1))
        assert_allclose(fm.theta[1], 0.001, rtol=0.1)

    def test_fit_on_model(self):
        m = ThresholdExceedance(self.exceedances, logscalecov=[("x1", self.x1), ("x2", self.x2)])
        fm = evakit.fit_mle(m)

        self.assertIs(fm.model, m)
        self.assertTrue(isapprox(fm.theta, self.gpd_theta, 0.1))

    def test_convergence_error(self):
        m = BlockMaxima(self.y)
        with self.assertRaises(ConvergenceError):
            estimation.mle_estimate(m, maxiter=1)

    def test_infeasible_initial_value(self):
        m = BlockMaxima(self.y)
        with self.assertRaises(ConvergenceError):
            evakit.fit_mle(m, initialvalue=[100.0, 0.0, 0.5])

    def test_singular_information(self):
        m = BlockMaxima(self.y[:500], locationcov=[("x", self.x1[:500]), ("x_copy", self.x1[:500])])
        fm = evakit.MaximumLikelihoodEVA(m, [10.0, 0.1, 0.1, np.log(2.0), 0.1])

        with self.assertRaises(SingularInformationError):
            fm.parametervar()

    def test_information_covariance_matches_scipy(self):
        m = BlockMaxima(self.y[:1000])
        theta = estimation.mle_estimate(m)
        cov = estimation.information_covariance(m, theta)

        assert_allclose(cov, cov.T)
        self.assertTrue(np.all(np.linalg.eigvalsh(cov) > 0))

        c, loc, scale = stats.genextreme.fit(self.y[:1000])
        assert_allclose(theta, [loc, np.log(scale), -c], atol=0.02)


if __name__ == "__main__":
    unittest.main()
