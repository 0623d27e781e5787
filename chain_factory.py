from __future__ import annotations

import time
from typing import Callable, Dict

import numpy as np

from joint_chain import DEFAULT_LENGTH, DEFAULT_MASS, JointChain


def _build_chain_factory(
    N: int,
    initial_angle: float,
    M: int,
    perturbation: float,
    length: float,
    mass: float,
) -> Callable[[int], JointChain]:
    """
    chain constructor for instance `index` of an M-instance ensemble.
    """

    def make_chain(index: int) -> JointChain:
        """Instance 0 is the reference; later ones start slightly lower."""
        angle = initial_angle - index / M * perturbation
        return JointChain(N, angle, length=length, mass=mass)

    return make_chain


def generate_chain_factory(
    N: int = 3,
    initial_angle: float = np.pi / 4,
    M: int = 1,
    perturbation: float = 1e-6,
    length: float = DEFAULT_LENGTH,
    mass: float = DEFAULT_MASS,
) -> Dict[str, object]:
    """
    Build the chain factory for a perturbed ensemble of N-joint chains.

    Returns a payload holding the configuration alongside the factory.
    """

    if M < 1:
        raise ValueError(f"Ensemble needs at least one instance, got {M}")

    print(f"Building chain factory for N={N}, M={M}...")
    tic = time.time()
    make_chain = _build_chain_factory(N, initial_angle, M, perturbation, length, mass)
    # Fail on a bad configuration here rather than inside a worker.
    make_chain(0)
    payload = {
        "N": N,
        "initial_angle": initial_angle,
        "M": M,
        "perturbation": perturbation,
        "make_chain": make_chain,
    }

    toc = time.time()
    print(f"Chain factory ready in {toc - tic:.2f} s")
    return payload


if __name__ == "__main__":
    generate_chain_factory()
