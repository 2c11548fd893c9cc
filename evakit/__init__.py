# Use targeted warning configuration
from evakit.warnings import configure_warnings

configure_warnings()

from evakit.model import (
    Variable,
    ExplanatoryVariable,
    BlockMaxima,
    ThresholdExceedance,
    loglikelihood,
    standardize,
    reconstruct,
)
from evakit.fitted import (
    MaximumLikelihoodEVA,
    PwmEVA,
    BayesianEVA,
    transform,
    findposteriormode,
    parametervar,
    cint,
)
from evakit.returnlevel import ReturnLevel, returnlevel
from evakit import errors, estimation, fitted, model, utils
from evakit.fit import (
    fit_mle,
    fit_pwm,
    fit_bayesian,
    gevfit,
    gpfit,
    gevfitpwm,
    gpfitpwm,
    gevfitbayes,
    gpfitbayes,
)

__version__ = "v0.3.0"

__copyright__ = """
Copyright 2024, the evakit developers. Distributed under the terms of the
Revised BSD License."""

__license__ = "Revised BSD License"
