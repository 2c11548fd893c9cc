import warnings


class SamplerWarning(UserWarning):
    """Metropolis acceptance rate outside the range where the chain mixes well."""


# Only apply specific, reviewed filters here.


def configure_warnings():
    """
    Call this function at package import to apply evakit's targeted warning filters.
    """
    # A poorly tuned proposal is reported once per call site, not once per chain.
    warnings.filterwarnings("once", category=SamplerWarning)
    # Out-of-support vectors are mapped to -inf by the likelihood; the
    # intermediate overflow in scipy's log-density is expected.
    warnings.filterwarnings(
        "ignore",
        category=RuntimeWarning,
        module=r"^scipy\.stats\._continuous_distns$",
        message=r"overflow encountered",
    )
