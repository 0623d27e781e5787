"""
N-Pendulum Joint Chain
Fixed-step integrator and bounded trails for a chained multi-joint pendulum
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np

GRAVITY = 9.81
DAMPING = 0.999
DT = 0.1
PATH_LENGTH = 100
DEFAULT_LENGTH = 40.0
DEFAULT_MASS = 1.0

Point = Tuple[float, float]


@dataclass
class Joint:
    """One link of the chain; `angle` is relative to the parent link."""

    angle: float
    angular_velocity: float = 0.0
    length: float = DEFAULT_LENGTH
    mass: float = DEFAULT_MASS
    trail: Deque[Point] = field(default_factory=lambda: deque(maxlen=PATH_LENGTH))

    def __post_init__(self) -> None:
        if not self.length > 0:
            raise ValueError(f"Joint length must be positive, got {self.length}")
        if not self.mass > 0:
            raise ValueError(f"Joint mass must be positive, got {self.mass}")


class JointChain:
    """
    Ordered sequence of joints hanging from a fixed anchor.

    The chain is built once and only changes through `advance()`. A new
    joint count or initial angle means building a new chain.

    Parameters
    ----------
    num_joints : int
        Number of joints (the UI offers 2..10, anything >= 1 is accepted).
    initial_angle : float
        Starting angle in radians, applied to every joint.
    length, mass : float
        Shared link length and mass, used when per-joint values are not given.
    lengths, masses : sequence of float, optional
        Per-joint link lengths and masses.
    anchor : (float, float)
        World position of the pivot. +y points down.
    gravity, damping : float
        Gravitational constant and per-step velocity decay factor.
    """

    def __init__(
        self,
        num_joints: int,
        initial_angle: float,
        length: float = DEFAULT_LENGTH,
        mass: float = DEFAULT_MASS,
        lengths: Optional[Sequence[float]] = None,
        masses: Optional[Sequence[float]] = None,
        anchor: Point = (0.0, 0.0),
        gravity: float = GRAVITY,
        damping: float = DAMPING,
    ):
        if num_joints < 1:
            raise ValueError(f"A chain needs at least one joint, got {num_joints}")

        lengths = [length] * num_joints if lengths is None else list(lengths)
        masses = [mass] * num_joints if masses is None else list(masses)
        if len(lengths) != num_joints or len(masses) != num_joints:
            raise ValueError(
                f"Expected {num_joints} lengths and masses, "
                f"got {len(lengths)} and {len(masses)}"
            )

        self.joints: List[Joint] = [
            Joint(angle=float(initial_angle), length=float(link_length), mass=float(link_mass))
            for link_length, link_mass in zip(lengths, masses)
        ]
        self.anchor: Point = (float(anchor[0]), float(anchor[1]))
        self.gravity = float(gravity)
        self.damping = float(damping)

    def __len__(self) -> int:
        return len(self.joints)

    @property
    def angles(self) -> np.ndarray:
        return np.array([joint.angle for joint in self.joints])

    @property
    def angular_velocities(self) -> np.ndarray:
        return np.array([joint.angular_velocity for joint in self.joints])

    def torque(self, i: int) -> float:
        """Gravity torque on joint i from every joint at or below it."""
        tail = self.joints[i:]
        cumulative = np.cumsum([joint.angle for joint in tail])
        masses = np.array([joint.mass for joint in tail])
        return -float(np.sum(masses * self.gravity * self.joints[i].length * np.sin(cumulative)))

    def inertia(self, i: int) -> float:
        """Moment of inertia carried by joint i and the joints below it."""
        return float(sum(joint.mass * joint.length ** 2 for joint in self.joints[i:]))

    def advance(self) -> None:
        """
        Advance the whole chain by one step of `DT` and extend the trails.

        Joint i only reads joints i..N-1, which have not been updated yet
        in this pass, so the in-place sweep sees pre-step angles only.
        """
        for i, joint in enumerate(self.joints):
            angular_acceleration = self.torque(i) / self.inertia(i)
            joint.angular_velocity += angular_acceleration * DT
            joint.angular_velocity *= self.damping
            joint.angle += joint.angular_velocity * DT

        for joint, point in zip(self.joints, self.positions()[1:]):
            joint.trail.append(point)

    def positions(self) -> List[Point]:
        """Anchor followed by the absolute endpoint of every joint."""
        lengths = np.array([joint.length for joint in self.joints])
        angles = self.angles
        # Each link's angle is used as an absolute direction here.
        x = self.anchor[0] + np.concatenate([[0.0], np.cumsum(lengths * np.sin(angles))])
        y = self.anchor[1] + np.concatenate([[0.0], np.cumsum(lengths * np.cos(angles))])
        return [(float(px), float(py)) for px, py in zip(x, y)]

    def trails(self) -> List[Tuple[Tuple[Point, ...], int]]:
        """Snapshot of each joint's trail, oldest point first, with its index."""
        return [(tuple(joint.trail), i) for i, joint in enumerate(self.joints)]


def trail_alpha(index: int) -> float:
    """Opacity of the trail point at `index` (oldest is 0)."""
    return index / PATH_LENGTH
