"""
The ``estimation`` package holds the numerical engines behind the three
fitting strategies: likelihood maximization, probability-weighted
moments and Metropolis sampling. They work on flat parameter vectors;
``evakit.fit`` wraps their output in fitted-model objects.
"""

from evakit.estimation.maximum_likelihood import (
    getinitialvalue,
    mle_estimate,
    information_covariance,
)
from evakit.estimation.pwm import sample_pwm, gev_pwm, gpd_pwm, pwm_estimate
from evakit.estimation.bayesian import (
    MetropolisSampler,
    proposal_covariance,
    sample_chains,
)
