"""
N-Pendulum Simulation
Advance an ensemble of perturbed joint chains step by step
"""

import multiprocessing as mp
import time
from typing import Callable, Iterable, Tuple

import dill
import numpy as np

from chain_factory import generate_chain_factory
from joint_chain import DEFAULT_LENGTH, DEFAULT_MASS, DT, JointChain

_worker_factory = None
_worker_steps = None


def _worker_init(factory_blob: bytes, steps: int) -> None:
    """Initializer for worker processes; restores shared context."""
    global _worker_factory, _worker_steps
    _worker_factory = dill.loads(factory_blob)
    _worker_steps = steps


def _worker_simulate_single(index: int) -> Tuple[int, np.ndarray]:
    """Advance a single chain instance inside a worker process."""
    if _worker_factory is None:
        raise RuntimeError("Worker chain factory not initialized")
    return index, _run_instance(_worker_factory, index, _worker_steps)


def _run_instance(make_chain: Callable[[int], JointChain], index: int, steps: int) -> np.ndarray:
    """Node positions of one instance after every step, shape (steps, N+1, 2)."""
    chain = make_chain(index)
    nodes = np.empty((steps, len(chain) + 1, 2))
    for frame in range(steps):
        chain.advance()
        nodes[frame] = chain.positions()
    return nodes


def _store_positions(nodes: np.ndarray, x: np.ndarray, y: np.ndarray, idx: int) -> None:
    x[:, :, idx] = nodes[:, :, 0]
    y[:, :, idx] = nodes[:, :, 1]


def simulate_chain(
    N: int = 3,
    initial_angle: float = np.pi / 4,
    steps: int = 600,
    M: int = 20,
    perturbation: float = 1e-6,
    processes: int | None = None,
    output_file: str | None = 'simulation_results.npz',
    length: float = DEFAULT_LENGTH,
    mass: float = DEFAULT_MASS,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Simulate M instances of an N-joint chain with slightly different initial angles

    Parameters:
    -----------
    N : int
        Number of joints
    initial_angle : float
        Starting angle of the reference instance (radians)
    steps : int
        Number of `advance()` calls per instance
    M : int
        Number of chain instances
    perturbation : float
        Spread of the initial angles across instances
    processes : int | None
        Number of worker processes to use (default: cpu_count, falls back to sequential when <=1)
    output_file : str | None
        Where to record the trajectories; None skips writing

    Returns:
    --------
    t : array
        Simulation time after each step
    x : array
        X positions of the anchor and all joints (shape: steps x N+1 x M)
    y : array
        Y positions of the anchor and all joints (shape: steps x N+1 x M)
    """

    if steps < 1:
        raise ValueError(f"steps must be at least 1, got {steps}")

    payload = generate_chain_factory(
        N=N,
        initial_angle=initial_angle,
        M=M,
        perturbation=perturbation,
        length=length,
        mass=mass,
    )
    make_chain = payload['make_chain']

    t = DT * np.arange(1, steps + 1)

    # Initialize position arrays
    x = np.zeros((steps, N + 1, M))
    y = np.zeros((steps, N + 1, M))

    print(f"Simulating {M} chain instances for {steps} steps...")
    tic = time.time()

    cpu_total = mp.cpu_count() or 1
    processes = processes or min(M, cpu_total)
    processes = max(1, min(processes, M))

    if processes == 1:
        for ii in range(M):
            nodes = _run_instance(make_chain, ii, steps)
            _store_positions(nodes, x, y, ii)
            if (ii + 1) % 10 == 0 or ii + 1 == M:
                print(f"Progress: {ii+1}/{M}")
    else:
        print(f"Using {processes} parallel workers...")
        factory_blob = dill.dumps(make_chain)
        ctx = mp.get_context("spawn")
        with ctx.Pool(
            processes=processes,
            initializer=_worker_init,
            initargs=(factory_blob, steps),
        ) as pool:
            chunk_iter: Iterable[Tuple[int, np.ndarray]] = pool.imap_unordered(_worker_simulate_single, range(M))
            for completed, (idx, nodes) in enumerate(chunk_iter, start=1):
                _store_positions(nodes, x, y, idx)
                if (completed % 10 == 0) or completed == M:
                    print(f"Progress: {completed}/{M}")

    toc = time.time()
    print(f"Simulation completed in {toc-tic:.1f} seconds")

    if output_file is not None:
        np.savez(output_file, t=t, x=x, y=y, N=N, M=M)
        print(f"Results saved to {output_file}")

    return t, x, y


def load_results(filename: str = 'simulation_results.npz') -> tuple[np.ndarray, np.ndarray, np.ndarray, int, int]:
    """Read a recording written by `simulate_chain`."""
    with np.load(filename) as data:
        return data['t'], data['x'], data['y'], int(data['N']), int(data['M'])


if __name__ == '__main__':
    # Run simulation
    t, x, y = simulate_chain(N=3, steps=600, M=20)
