import numpy as np
import pytest

from analysis import chain_reach, estimate_divergence_rate, tip_separation
from simulator import simulate_chain


def _hanging_ensemble(offsets):
    """Single-joint chains hanging straight down, tips shifted sideways."""
    frames, instances = offsets.shape
    x = np.zeros((frames, 2, instances))
    y = np.zeros((frames, 2, instances))
    y[:, 1, :] = 40.0
    x[:, 1, :] = offsets
    return x, y


def test_tip_separation_measures_against_first_instance():
    offsets = np.array([[0.0, 3.0, -4.0], [1.0, 1.0, 1.0]])
    x, y = _hanging_ensemble(offsets)

    separation = tip_separation(x, y)

    np.testing.assert_allclose(separation, [[3.0, 4.0], [0.0, 0.0]])


def test_tip_separation_needs_two_instances():
    x, y = _hanging_ensemble(np.zeros((5, 1)))
    with pytest.raises(ValueError):
        tip_separation(x, y)


def test_reach_is_total_link_length():
    _, x, y = simulate_chain(N=3, steps=5, M=1, processes=1, output_file=None)
    assert chain_reach(x, y) == pytest.approx(120.0)


def test_recovers_exponential_growth_rate():
    t = np.arange(1, 201) * 0.1
    offsets = np.zeros((len(t), 2))
    offsets[:, 1] = 1e-6 * np.exp(0.5 * t)
    x, y = _hanging_ensemble(offsets)

    estimate = estimate_divergence_rate(t, x, y)

    assert estimate.rate == pytest.approx(0.5, rel=1e-3)
    assert estimate.r_value == pytest.approx(1.0, abs=1e-6)
    # 1e-6 * exp(0.5 t) reaches 4.0 (10% of reach) near t = 30.4
    assert estimate.points == len(t)


def test_fit_stops_at_saturation():
    t = np.arange(1, 101) * 0.1
    offsets = np.zeros((len(t), 2))
    offsets[:, 1] = np.where(t < 5.0, 1e-3 * np.exp(t), 20.0)
    x, y = _hanging_ensemble(offsets)

    estimate = estimate_divergence_rate(t, x, y)

    assert estimate.rate == pytest.approx(1.0, rel=1e-3)
    assert estimate.points <= 50


def test_identical_instances_cannot_be_fitted():
    t = np.arange(1, 11) * 0.1
    x, y = _hanging_ensemble(np.zeros((10, 3)))
    with pytest.raises(ValueError):
        estimate_divergence_rate(t, x, y)
