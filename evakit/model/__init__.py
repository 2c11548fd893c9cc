"""
The ``model`` package defines the data containers, the extreme value
models with their flat parameter layout, and the likelihood evaluator
shared by every fitting strategy.
"""

from evakit.model.variables import (
    Variable,
    ExplanatoryVariable,
    standardize,
    reconstruct,
)
from evakit.model.parameters import (
    ParameterIndex,
    EVAModel,
    BlockMaxima,
    ThresholdExceedance,
    build_parameter_vector,
)
from evakit.model.likelihood import getdistribution, loglikelihood, quantile
