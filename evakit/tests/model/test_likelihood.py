import numpy as np
import unittest
import evakit.model as model
from evakit.errors import InvalidProbabilityError
from numpy.testing import assert_allclose
from scipy import stats


class TestLikelihood(unittest.TestCase):
    @classmethod
    def setUpClass(self):
        rng = np.random.default_rng(7)
        self.y = stats.genextreme.rvs(c=-0.1, loc=2.0, scale=0.5, size=100, random_state=rng)
        self.x = rng.normal(size=100)
        self.exceedances = stats.genpareto.rvs(c=0.1, scale=1.5, size=100, random_state=rng)

    def test_gev_loglikelihood(self):
        m = model.BlockMaxima(self.y)
        theta = [2.0, np.log(0.5), 0.1]

        expected = np.sum(stats.genextreme.logpdf(self.y, c=-0.1, loc=2.0, scale=0.5))
        assert_allclose(model.loglikelihood(m, theta), expected)

    def test_gev_loglikelihood_with_covariate(self):
        m = model.BlockMaxima(self.y, locationcov=[("x", self.x)])
        theta = [2.0, 0.3, np.log(0.5), 0.1]

        expected = np.sum(
            stats.genextreme.logpdf(self.y, c=-0.1, loc=2.0 + 0.3 * self.x, scale=0.5)
        )
        assert_allclose(model.loglikelihood(m, theta), expected)

    def test_gpd_loglikelihood(self):
        m = model.ThresholdExceedance(self.exceedances)
        theta = [np.log(1.5), 0.1]

        expected = np.sum(stats.genpareto.logpdf(self.exceedances, c=0.1, scale=1.5))
        assert_allclose(model.loglikelihood(m, theta), expected)

    def test_gev_outside_support(self):
        # With a positive shape the support is bounded below at mu - sigma / xi.
        m = model.BlockMaxima([0.0, 1.0, -3.0])
        self.assertEqual(model.loglikelihood(m, [0.0, 0.0, 0.5]), -np.inf)

        # With a negative shape it is bounded above at mu - sigma / xi.
        m = model.BlockMaxima([0.0, 1.0, 3.0])
        self.assertEqual(model.loglikelihood(m, [0.0, 0.0, -0.5]), -np.inf)

    def test_gpd_outside_support(self):
        m = model.ThresholdExceedance([0.5, 1.0, 3.0])
        self.assertEqual(model.loglikelihood(m, [0.0, -0.5]), -np.inf)

        m = model.ThresholdExceedance([0.5, -1.0])
        self.assertEqual(model.loglikelihood(m, [0.0, 0.1]), -np.inf)

    def test_shape_below_minus_one(self):
        # Unbounded density at the upper endpoint: the sum would be +inf.
        m = model.ThresholdExceedance([0.5, 1.0, 2.0])
        self.assertEqual(model.loglikelihood(m, [np.log(4.0), -2.0]), -np.inf)
        self.assertEqual(model.loglikelihood(m, [np.log(4.0), -1.0]), -np.inf)

        m = model.BlockMaxima([0.0, 0.5, 1.0])
        self.assertEqual(model.loglikelihood(m, [0.5, np.log(2.0), -1.5]), -np.inf)

    def test_non_finite_parameters(self):
        m = model.BlockMaxima(self.y)

        self.assertEqual(model.loglikelihood(m, [np.nan, 0.0, 0.1]), -np.inf)
        self.assertEqual(model.loglikelihood(m, [0.0, np.inf, 0.1]), -np.inf)
        self.assertEqual(model.loglikelihood(m, [0.0, 1000.0, 0.1]), -np.inf)

    def test_wrong_length(self):
        m = model.BlockMaxima(self.y)
        with self.assertRaises(ValueError):
            model.loglikelihood(m, [0.0, 0.0])

    def test_quantile(self):
        m = model.BlockMaxima(self.y)
        q = model.quantile(m, [2.0, np.log(0.5), 0.1], 0.99)

        self.assertEqual(q.shape, (1,))
        assert_allclose(q, stats.genextreme.ppf(0.99, c=-0.1, loc=2.0, scale=0.5))

        m = model.ThresholdExceedance(self.exceedances)
        q = model.quantile(m, [np.log(1.5), 0.1], 0.9)
        assert_allclose(q, stats.genpareto.ppf(0.9, c=0.1, scale=1.5))

    def test_quantile_per_row(self):
        m = model.BlockMaxima(self.y, locationcov=[("x", self.x)])
        q = model.quantile(m, [2.0, 0.3, np.log(0.5), 0.1], 0.5)

        self.assertEqual(q.shape, (100,))
        assert_allclose(
            q, stats.genextreme.ppf(0.5, c=-0.1, loc=2.0 + 0.3 * self.x, scale=0.5)
        )

    def test_quantile_invalid_probability(self):
        m = model.BlockMaxima(self.y)
        for p in [-1, 0, 1, 1.5]:
            with self.assertRaises(InvalidProbabilityError):
                model.quantile(m, [2.0, 0.0, 0.1], p)


if __name__ == "__main__":
    unittest.main()
