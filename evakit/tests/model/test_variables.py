import numpy as np
import pandas as pd
import xarray as xr
import unittest
import evakit.model as model
from evakit.errors import DegenerateCovariateError
from numpy.testing import assert_allclose


class TestVariables(unittest.TestCase):
    @classmethod
    def setUpClass(self):
        rng = np.random.default_rng(42)
        self.x = rng.normal(5.0, 3.0, 200)

    def test_standardize(self):
        z, scale, offset = model.standardize(self.x)

        assert_allclose(np.mean(z), 0.0, atol=1e-12)
        assert_allclose(np.std(z, ddof=1), 1.0)
        assert_allclose(scale, np.std(self.x, ddof=1))
        assert_allclose(offset, np.mean(self.x))

    def test_standardize_reconstruct(self):
        z, scale, offset = model.standardize(self.x)
        assert_allclose(model.reconstruct(z, scale, offset), self.x)

    def test_standardize_given_scale_and_offset(self):
        z, scale, offset = model.standardize(self.x, scale=2.0, offset=1.0)

        self.assertEqual(scale, 2.0)
        self.assertEqual(offset, 1.0)
        assert_allclose(z, (self.x - 1.0) / 2.0)

    def test_standardize_already_standardized(self):
        z, _, _ = model.standardize(self.x)
        z2, scale, offset = model.standardize(z)

        self.assertEqual(scale, 1.0)
        self.assertEqual(offset, 0.0)
        assert_allclose(z2, z)

    def test_standardize_constant(self):
        with self.assertRaises(DegenerateCovariateError):
            model.standardize(np.full(10, 3.0))
        with self.assertRaises(DegenerateCovariateError):
            model.standardize(self.x, scale=0.0)

    def test_standardize_does_not_mutate(self):
        x = self.x.copy()
        model.standardize(x)
        assert_allclose(x, self.x)

    def test_standardize_input_types(self):
        expected, _, _ = model.standardize(self.x)
        for data in [list(self.x), pd.Series(self.x), xr.DataArray(self.x)]:
            z, _, _ = model.standardize(data)
            assert_allclose(z, expected)

        with self.assertRaises(TypeError):
            model.standardize("abc")

    def test_variable_read_only(self):
        v = model.Variable("y", self.x)

        self.assertEqual(v.name, "y")
        self.assertEqual(len(v), self.x.size)
        with self.assertRaises(ValueError):
            v.value[0] = 0.0

    def test_explanatory_variable(self):
        ev = model.ExplanatoryVariable("x", self.x)
        self.assertFalse(ev.isstandardized())

        std = ev.standardize()
        self.assertTrue(std.isstandardized())
        self.assertIs(std.standardize(), std)
        assert_allclose(np.mean(std.value), 0.0, atol=1e-12)
        assert_allclose(std.scale, np.std(self.x, ddof=1))
        assert_allclose(std.offset, np.mean(self.x))

        raw = std.reconstruct()
        assert_allclose(raw.value, self.x)
        self.assertEqual(raw.name, "x")
        # The input variable is untouched.
        assert_allclose(ev.value, self.x)

    def test_explanatory_variable_zero_scale(self):
        with self.assertRaises(DegenerateCovariateError):
            model.ExplanatoryVariable("x", self.x, scale=0.0)


if __name__ == "__main__":
    unittest.main()
