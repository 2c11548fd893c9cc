"""
The ``fitted`` package wraps the output of the fitting strategies in
objects sharing one contract (quantile, parametervar, cint,
getdistribution) and maps fits on standardized covariates back to the
raw covariate scales.
"""

from evakit.fitted.fitted_eva import (
    FittedEVA,
    MaximumLikelihoodEVA,
    PwmEVA,
    BayesianEVA,
    DistributionSequence,
    parametervar,
    cint,
    quantile,
    getdistribution,
    findposteriormode,
)
from evakit.fitted.transform import transform, backtransform_matrix
