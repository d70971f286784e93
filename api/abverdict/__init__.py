"""ABVerdict: Bayesian winner detection for two-arm product page tests."""

__version__ = "0.1.0"
