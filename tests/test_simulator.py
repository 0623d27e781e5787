import math

import dill
import numpy as np
import pytest

from chain_factory import generate_chain_factory
from joint_chain import DT, JointChain
from simulator import load_results, simulate_chain


def test_factory_perturbs_instances_from_reference():
    payload = generate_chain_factory(N=4, initial_angle=1.0, M=10, perturbation=0.5)
    make_chain = payload["make_chain"]

    assert payload["N"] == 4
    assert payload["M"] == 10
    np.testing.assert_allclose(make_chain(0).angles, np.full(4, 1.0))
    np.testing.assert_allclose(make_chain(5).angles, np.full(4, 0.75))


def test_factory_survives_dill_round_trip():
    payload = generate_chain_factory(N=3, initial_angle=0.6, M=4, perturbation=0.1)

    restored = dill.loads(dill.dumps(payload["make_chain"]))

    chain = restored(2)
    assert isinstance(chain, JointChain)
    np.testing.assert_allclose(chain.angles, np.full(3, 0.55))


def test_factory_rejects_bad_configuration():
    with pytest.raises(ValueError):
        generate_chain_factory(N=0)
    with pytest.raises(ValueError):
        generate_chain_factory(N=3, M=0)


def test_simulation_shapes_and_time_axis():
    t, x, y = simulate_chain(N=3, steps=25, M=2, processes=1, output_file=None)

    assert x.shape == (25, 4, 2)
    assert y.shape == (25, 4, 2)
    np.testing.assert_allclose(t, DT * np.arange(1, 26))
    assert np.all(x[:, 0, :] == 0.0)
    assert np.all(y[:, 0, :] == 0.0)


def test_simulation_matches_direct_chain():
    _, x, y = simulate_chain(
        N=3, initial_angle=math.pi / 3, steps=40, M=1, processes=1, output_file=None
    )

    chain = JointChain(3, math.pi / 3)
    for _ in range(40):
        chain.advance()

    expected = np.asarray(chain.positions())
    np.testing.assert_array_equal(x[-1, :, 0], expected[:, 0])
    np.testing.assert_array_equal(y[-1, :, 0], expected[:, 1])


def test_parallel_run_matches_sequential():
    kwargs = dict(N=2, initial_angle=1.0, steps=30, M=3, perturbation=1e-3, output_file=None)

    _, x_seq, y_seq = simulate_chain(processes=1, **kwargs)
    _, x_par, y_par = simulate_chain(processes=2, **kwargs)

    np.testing.assert_array_equal(x_seq, x_par)
    np.testing.assert_array_equal(y_seq, y_par)


def test_results_recording(tmp_path):
    output = tmp_path / "results.npz"

    t, x, y = simulate_chain(N=2, steps=10, M=2, processes=1, output_file=str(output))
    t_loaded, x_loaded, y_loaded, N, M = load_results(str(output))

    assert (N, M) == (2, 2)
    np.testing.assert_array_equal(t_loaded, t)
    np.testing.assert_array_equal(x_loaded, x)
    np.testing.assert_array_equal(y_loaded, y)


def test_zero_steps_rejected():
    with pytest.raises(ValueError):
        simulate_chain(steps=0, processes=1, output_file=None)
