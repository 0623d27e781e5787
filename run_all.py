"""
Run complete chain pendulum pipeline
"""

import argparse
import math
from typing import Optional, Sequence

import analysis
import animator
import simulator

MIN_JOINTS = 2
MAX_JOINTS = 10
MAX_ANGLE_DEG = 90.0


def _joint_count(value: str) -> int:
    count = int(value)
    if not MIN_JOINTS <= count <= MAX_JOINTS:
        raise argparse.ArgumentTypeError(
            f"joint count must be between {MIN_JOINTS} and {MAX_JOINTS}, got {count}"
        )
    return count


def _angle_deg(value: str) -> float:
    angle = float(value)
    if not 0.0 <= angle <= MAX_ANGLE_DEG:
        raise argparse.ArgumentTypeError(
            f"initial angle must be between 0 and {MAX_ANGLE_DEG:g} degrees, got {angle:g}"
        )
    return angle


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chaotic N-joint pendulum simulation")
    parser.add_argument("--joints", type=_joint_count, help="number of joints (2-10)")
    parser.add_argument("--angle-deg", type=_angle_deg, help="initial angle of every joint, in degrees (0-90)")
    parser.add_argument("--steps", type=_positive_int, help="simulation steps per instance")
    parser.add_argument("--instances", type=_positive_int, help="number of perturbed instances")
    parser.add_argument("--perturbation", type=float, help="spread of initial angles across instances (radians)")
    parser.add_argument("--processes", type=int, help="worker processes (default: one per CPU)")
    parser.add_argument("--mode", choices=("live", "ensemble"), default="ensemble",
                        help="animate one chain live or play back the recorded ensemble")
    parser.add_argument("--save-video", action="store_true", help="write an mp4 instead of opening a window")
    parser.add_argument("--video", help="output video filename")
    return parser


def main(argv: Optional[Sequence[str]] = None):
    """
    Complete pipeline:
    1. Simulate an ensemble of perturbed chains
    2. Measure how fast the instances diverge
    3. Create animation/video
    """

    args = build_parser().parse_args(argv)

    print("=" * 60)
    print("N-JOINT CHAOS PENDULUM")
    print("=" * 60)
    print()

    # Configuration
    N = args.joints or 3                      # Number of joints
    initial_angle = math.pi / 4               # Starting angle of every joint (radians)
    if args.angle_deg is not None:
        initial_angle = math.radians(args.angle_deg)
    steps = args.steps or 600                 # advance() calls per instance
    M = args.instances or 20                  # Number of chain instances
    perturbation = 1e-6 if args.perturbation is None else args.perturbation
    results_file = 'simulation_results.npz'

    print(f"Configuration:")
    print(f"  N (joints): {N}")
    print(f"  Initial angle: {math.degrees(initial_angle):.0f} deg")
    print(f"  Steps: {steps}")
    print(f"  Number of instances: {M}")
    print(f"  Perturbation: {perturbation:.2e}")
    print(f"  Animation: {args.mode}")
    print()

    # Step 1: Run simulation
    print("STEP 1: Simulating chain ensemble...")
    print("-" * 60)
    t, x, y = simulator.simulate_chain(
        N=N,
        initial_angle=initial_angle,
        steps=steps,
        M=M,
        perturbation=perturbation,
        processes=args.processes,
        output_file=results_file,
    )
    print()

    # Step 2: Divergence
    print("STEP 2: Measuring divergence...")
    print("-" * 60)
    if M < 2:
        print("Skipped: needs at least two instances")
    else:
        try:
            estimate = analysis.estimate_divergence_rate(t, x, y)
        except ValueError as err:
            print(f"Skipped: {err}")
        else:
            print(f"  Divergence rate: {estimate.rate:.4f} per time unit "
                  f"(r={estimate.r_value:.3f}, {estimate.points} frames)")
    print()

    # Step 3: Create animation
    print("STEP 3: Creating animation...")
    print("-" * 60)
    if args.mode == "live":
        animator.animate_chain(
            num_joints=N,
            initial_angle=initial_angle,
            frames=steps,
            save_video=args.save_video,
            video_filename=args.video or f'{N}_joint_chain.mp4',
        )
    else:
        animator.animate_ensemble(
            results_file=results_file,
            save_video=args.save_video,
            video_filename=args.video or f'{N}_joint_chain_{M}_instances.mp4',
        )
    print()

    print("=" * 60)
    print("COMPLETE!")
    print("=" * 60)


if __name__ == '__main__':
    main()
