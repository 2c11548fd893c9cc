"""
This module initializes and imports the utility functions for input
conversion, argument validation and interval statistics used across
evakit.
"""

from .type_handling import (
    to_numeric_array,
    check_probability,
    check_level,
    check_positive,
    to_readonly_array,
)
from .stat_utils import (
    hpd_interval,
    empirical_interval,
    wald_interval,
    empirical_covariance,
)
