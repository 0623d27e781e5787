"""
Chaos measurement for a recorded chain ensemble
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.stats import linregress


@dataclass(frozen=True)
class DivergenceEstimate:
    rate: float
    intercept: float
    r_value: float
    points: int


def tip_separation(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Distance between the last joint of each perturbed instance and instance 0.

    Parameters
    ----------
    x, y : ndarray
        Node positions, shape (frames, N+1, M).

    Returns
    -------
    ndarray
        Separation per frame and instance, shape (frames, M-1).
    """
    if x.shape != y.shape:
        raise ValueError("X and Y arrays must share the same shape")
    if x.ndim != 3 or x.shape[2] < 2:
        raise ValueError(f"Need at least two instances, got array of shape {x.shape}")

    dx = x[:, -1, 1:] - x[:, -1, :1]
    dy = y[:, -1, 1:] - y[:, -1, :1]
    return np.hypot(dx, dy)


def chain_reach(x: np.ndarray, y: np.ndarray) -> float:
    """Sum of link lengths of the reference instance."""
    return float(np.sum(np.hypot(np.diff(x[0, :, 0]), np.diff(y[0, :, 0]))))


def estimate_divergence_rate(
    t: np.ndarray,
    x: np.ndarray,
    y: np.ndarray,
    saturation_fraction: float = 0.1,
) -> DivergenceEstimate:
    """
    Exponential growth rate of the mean tip separation.

    Only frames before the separation first reaches `saturation_fraction`
    of the chain's reach are fitted; past that point the growth saturates.
    """
    separation = tip_separation(x, y).mean(axis=1)
    ceiling = saturation_fraction * chain_reach(x, y)
    usable = separation > 0
    saturated = np.flatnonzero(separation >= ceiling)
    if saturated.size:
        usable[saturated[0]:] = False
    if np.count_nonzero(usable) < 3:
        raise ValueError(
            f"Only {np.count_nonzero(usable)} frames below saturation; need at least 3"
        )

    fit = linregress(t[usable], np.log(separation[usable]))
    return DivergenceEstimate(
        rate=float(fit.slope),
        intercept=float(fit.intercept),
        r_value=float(fit.rvalue),
        points=int(np.count_nonzero(usable)),
    )
