import logging
import numpy as np
import pandas as pd
import unittest
import evakit
from numpy.testing import assert_allclose
from scipy import stats


class TestPackage(unittest.TestCase):
    def test_subpackages(self):
        for name in ["errors", "estimation", "fitted", "model", "utils"]:
            self.assertTrue(hasattr(evakit, name))
        with self.assertRaises(AttributeError):
            evakit.plotting


class TestFit(unittest.TestCase):
    @classmethod
    def setUpClass(self):
        rng = np.random.default_rng(99)
        n = 300
        year = np.arange(1950, 1950 + n, dtype=float)
        soi = rng.normal(size=n)
        sealevel = stats.genextreme.rvs(
            c=0.1, loc=1.4 + 0.002 * (year - 1950) + 0.05 * soi, scale=0.12, random_state=rng
        )
        self.df = pd.DataFrame({"Year": year, "SOI": soi, "SeaLevel": sealevel})

    def test_dataframe_covariates(self):
        fm = evakit.gevfit(self.df, "SeaLevel", locationcovid=["Year", "SOI"])
        fm_arrays = evakit.gevfit(
            self.df["SeaLevel"],
            locationcov=[("Year", self.df["Year"]), ("SOI", self.df["SOI"])],
        )

        self.assertEqual(
            fm.model.parameter_names(),
            ["location", "location_Year", "location_SOI", "logscale", "shape"],
        )
        assert_allclose(fm.theta, fm_arrays.theta, rtol=1e-6)
        assert_allclose(fm.theta[1], 0.002, rtol=0.25)

    def test_dataframe_errors(self):
        with self.assertRaises(ValueError):
            evakit.gevfit(self.df)
        with self.assertRaises(KeyError):
            evakit.gevfit(self.df, "SeaLevel", locationcovid=["Time"])
        with self.assertRaises(ValueError):
            evakit.gevfit(self.df["SeaLevel"], locationcovid=["Year"])
        with self.assertRaises(ValueError):
            evakit.gevfit(
                self.df, "SeaLevel", locationcov=[("Year", self.df["Year"])]
            )

    def test_scalecov_alias(self):
        fm = evakit.gpfit(
            np.abs(self.df["SeaLevel"] - 1.0), scalecov=[("SOI", self.df["SOI"])]
        )
        self.assertEqual(fm.model.parameter_names(), ["logscale", "logscale_SOI", "shape"])

        with self.assertRaises(ValueError):
            evakit.gpfit(
                self.df["SeaLevel"],
                logscalecov=[("SOI", self.df["SOI"])],
                scalecov=[("SOI", self.df["SOI"])],
            )

    def test_initial_value_on_raw_scale(self):
        fm = evakit.gevfit(self.df, "SeaLevel", locationcovid=["Year"])
        again = evakit.gevfit(
            self.df, "SeaLevel", locationcovid=["Year"], initialvalue=fm.theta
        )

        assert_allclose(again.theta, fm.theta, rtol=1e-3, atol=1e-3)
        assert_allclose(again.loglikelihood(), fm.loglikelihood(), atol=1e-4)

    def test_fit_logs_summary(self):
        with self.assertLogs("evakit.fit", level=logging.INFO) as logs:
            evakit.gevfit(self.df["SeaLevel"])
        self.assertTrue(any("maximum likelihood" in line for line in logs.output))

    def test_str(self):
        fm = evakit.gevfit(self.df["SeaLevel"])
        self.assertIn("location", str(fm))

        bfm = evakit.gevfitbayes(self.df["SeaLevel"], niter=200, warmup=100, random_state=0)
        self.assertIn("Samples per chain", str(bfm))


if __name__ == "__main__":
    unittest.main()
