"""Monte Carlo draws from Beta posteriors of a binary metric.

Each arm's conversion rate gets a uniform Beta(1, 1) prior, so after
observing ``s`` successes in ``n`` trials the posterior is
Beta(s + 1, n - s + 1).  Beta variates are built from two independent
Gamma variates, ``X / (X + Y)``, and the Gamma variates come from the
Marsaglia-Tsang squeeze/rejection method, vectorized over numpy arrays.

All functions take an explicit ``numpy.random.Generator`` so runs are
reproducible under a fixed seed.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

DEFAULT_MAX_ROUNDS = 1000


class SamplingError(RuntimeError):
    """Raised when the rejection sampler fails to fill the requested draws."""


class PosteriorSamples(NamedTuple):
    control: np.ndarray
    variant: np.ndarray


def _check_size(size: int) -> None:
    if size < 1:
        raise ValueError("sample count must be at least 1")


def gamma_variates(
    shape: float,
    size: int,
    rng: np.random.Generator,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> np.ndarray:
    """Draw *size* variates from Gamma(shape, 1).

    For ``shape >= 1`` this is Marsaglia & Tsang (2000): with
    ``d = shape - 1/3`` and ``c = 1 / sqrt(9d)``, propose ``d * v**3`` where
    ``v = 1 + c * x`` and ``x`` is standard normal, and accept with the
    squeeze ``u < 1 - 0.0331 x**4`` or the full test
    ``log(u) < x**2 / 2 + d (1 - v**3 + log v**3)``.

    For ``0 < shape < 1`` the boost identity
    ``Gamma(k) = Gamma(k + 1) * U**(1/k)`` is applied once.

    Parameters
    ----------
    shape : float
        Shape parameter, must be positive.
    size : int
        Number of variates to draw.
    rng : np.random.Generator
        Source of randomness.
    max_rounds : int
        Upper bound on rejection rounds.  Acceptance is above 95% for every
        shape, so this only trips on a broken random source.

    Returns
    -------
    np.ndarray
        Array of shape (size,).
    """
    if not shape > 0:
        raise ValueError("Gamma shape must be positive")
    _check_size(size)

    if shape < 1:
        boosted = gamma_variates(shape + 1.0, size, rng, max_rounds)
        return boosted * rng.random(size) ** (1.0 / shape)

    d = shape - 1.0 / 3.0
    c = 1.0 / np.sqrt(9.0 * d)

    out = np.empty(size, dtype=float)
    pending = np.arange(size)

    for _ in range(max_rounds):
        n = pending.size
        x = rng.standard_normal(n)
        u = rng.random(n)
        v = 1.0 + c * x

        positive = v > 0
        v3 = np.where(positive, v * v * v, 1.0)
        with np.errstate(divide="ignore"):
            log_u = np.log(u)
        accept = positive & (
            (u < 1.0 - 0.0331 * x**4)
            | (log_u < 0.5 * x * x + d * (1.0 - v3 + np.log(v3)))
        )

        out[pending[accept]] = d * v3[accept]
        pending = pending[~accept]
        if pending.size == 0:
            return out

    raise SamplingError(
        f"Gamma({shape}) rejection sampler left {pending.size} of {size} "
        f"draws unfilled after {max_rounds} rounds"
    )


def beta_variates(
    alpha: float,
    beta: float,
    size: int,
    rng: np.random.Generator,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> np.ndarray:
    """Draw *size* variates from Beta(alpha, beta) as ``X / (X + Y)``."""
    x = gamma_variates(alpha, size, rng, max_rounds)
    y = gamma_variates(beta, size, rng, max_rounds)
    return x / (x + y)


def posterior_params(successes: int, total: int) -> tuple[float, float]:
    """Beta posterior parameters under the uniform prior."""
    if successes < 0:
        raise ValueError("successes must be non-negative")
    if total < 0:
        raise ValueError("total must be non-negative")
    if successes > total:
        raise ValueError("successes cannot exceed total")
    return successes + 1.0, (total - successes) + 1.0


def sample_posteriors(
    control_successes: int,
    control_total: int,
    variant_successes: int,
    variant_total: int,
    sample_count: int,
    rng: np.random.Generator,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> PosteriorSamples:
    """Draw paired posterior samples of one metric for control and variant.

    Returns
    -------
    PosteriorSamples
        ``control`` and ``variant`` arrays of length *sample_count*,
        every value in [0, 1].
    """
    _check_size(sample_count)
    alpha_a, beta_a = posterior_params(control_successes, control_total)
    alpha_b, beta_b = posterior_params(variant_successes, variant_total)
    return PosteriorSamples(
        control=beta_variates(alpha_a, beta_a, sample_count, rng, max_rounds),
        variant=beta_variates(alpha_b, beta_b, sample_count, rng, max_rounds),
    )
