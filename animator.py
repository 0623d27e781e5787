"""
N-Pendulum Animation
Draw a joint chain with fading trails, live or from a recorded ensemble
"""

from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation, FFMpegWriter
from matplotlib.collections import LineCollection

from analysis import chain_reach
from joint_chain import JointChain, trail_alpha
from simulator import load_results

ANCHOR_COLOR = '#4A5568'
ANCHOR_RING_COLOR = '#E2E8F0'
THREAD_COLOR = '#A0AEC0'
JOINT_COLOR = '#4A5568'
TRAIL_RGB = (66 / 255, 153 / 255, 225 / 255)
BASE_FPS = 60


def trail_colors(count: int) -> np.ndarray:
    """RGBA rows for the first `count` trail points, fading in with age."""
    colors = np.empty((count, 4))
    colors[:, :3] = TRAIL_RGB
    colors[:, 3] = [trail_alpha(k) for k in range(count)]
    return colors


def trail_segments(trail: Sequence[Tuple[float, float]]) -> np.ndarray:
    """Consecutive point pairs of a trail, shape (len-1, 2, 2)."""
    points = np.asarray(trail, dtype=float).reshape(-1, 2)
    if len(points) < 2:
        return np.empty((0, 2, 2))
    return np.stack([points[:-1], points[1:]], axis=1)


def _setup_axes(axis_limit: float, anchor: Tuple[float, float] = (0.0, 0.0)):
    dpi = 100
    fig = plt.figure(figsize=(8, 8), dpi=dpi, facecolor='white')
    ax = fig.add_subplot(111)
    ax.set_aspect('equal')
    ax.axis('off')
    ax.set_xlim(anchor[0] - axis_limit, anchor[0] + axis_limit)
    # +y points down, as on a canvas
    ax.set_ylim(anchor[1] + axis_limit, anchor[1] - axis_limit)
    return fig, ax, dpi


def _draw_anchor(ax, anchor: Tuple[float, float]) -> None:
    for size, color in ((16, ANCHOR_COLOR), (12, ANCHOR_RING_COLOR), (8, ANCHOR_COLOR)):
        ax.plot([anchor[0]], [anchor[1]], 'o', markersize=size, color=color, zorder=4)


def create_chain_artists(ax, chain: JointChain) -> Dict[str, object]:
    """Create the thread, joint and trail artists for one chain."""
    _draw_anchor(ax, chain.anchor)
    thread, = ax.plot([], [], '-', linewidth=1, color=THREAD_COLOR, zorder=1)
    joints, = ax.plot([], [], 'o', markersize=7, color=JOINT_COLOR, zorder=3)
    trails = []
    for _ in range(len(chain)):
        collection = LineCollection([], linewidths=2, zorder=2)
        ax.add_collection(collection)
        trails.append(collection)
    return {'thread': thread, 'joints': joints, 'trails': trails}


def draw_chain(artists: Dict[str, object], chain: JointChain) -> List[object]:
    """Refresh the artists from the chain's current positions and trails."""
    nodes = np.asarray(chain.positions())
    artists['thread'].set_data(nodes[:, 0], nodes[:, 1])
    artists['joints'].set_data(nodes[1:, 0], nodes[1:, 1])

    for trail, index in chain.trails():
        segments = trail_segments(trail)
        collection = artists['trails'][index]
        collection.set_segments(segments)
        if len(segments):
            # segment k ends at trail point k+1
            collection.set_color(trail_colors(len(trail))[1:])

    return [artists['thread'], artists['joints']] + artists['trails']


def _render_fps(playback_speed: float) -> Tuple[int, float]:
    playback_speed = max(playback_speed, 1e-3)
    render_fps = max(1, int(round(BASE_FPS * playback_speed)))
    return render_fps, render_fps / BASE_FPS


def _finish(anim: FuncAnimation, fig, save_video: bool, video_filename: str, render_fps: int, dpi: int) -> None:
    if save_video:
        print(f"Saving video to {video_filename}...")
        writer = FFMpegWriter(fps=render_fps, bitrate=5000, extra_args=['-vcodec', 'libx264'])
        anim.save(video_filename, writer=writer, dpi=dpi)
        print("Video saved successfully!")
    else:
        print("Displaying animation (close window to exit)...")
        plt.show()

    plt.close(fig)


def animate_chain(
    num_joints: int = 3,
    initial_angle: float = np.pi / 4,
    frames: int = 1000,
    save_video: bool = False,
    video_filename: str = 'pendulum_chain.mp4',
    playback_speed: float = 1.0,
):
    """
    Advance a joint chain one step per frame and draw it.

    Parameters
    ----------
    num_joints : int
        Number of joints in the chain.
    initial_angle : float
        Starting angle of every joint (radians).
    frames : int
        Number of frames (and `advance()` calls) to render.
    save_video : bool
        Write an mp4 instead of opening a window.
    video_filename : str
        Output video filename.
    playback_speed : float
        Relative playback multiplier (>1 faster, <1 slower).
    """

    chain = JointChain(num_joints, initial_angle)
    axis_limit = 1.1 * sum(joint.length for joint in chain.joints)
    render_fps, actual_speed = _render_fps(playback_speed)

    fig, ax, dpi = _setup_axes(axis_limit, chain.anchor)
    artists = create_chain_artists(ax, chain)

    def update(frame):
        """Advance the chain, then redraw it"""
        chain.advance()
        if (frame + 1) % 30 == 0:
            print(f'Animating: {100 * (frame + 1) / frames:.1f}%', end='\r')
        return draw_chain(artists, chain)

    print(f"Creating animation at {render_fps} fps (~{actual_speed:.2f}x speed)...")
    anim = FuncAnimation(
        fig,
        update,
        frames=frames,
        init_func=lambda: draw_chain(artists, chain),
        blit=True,
        interval=1000 / render_fps,
    )
    _finish(anim, fig, save_video, video_filename, render_fps, dpi)
    return chain


def animate_ensemble(
    results_file: str = 'simulation_results.npz',
    save_video: bool = True,
    video_filename: str = 'pendulum_ensemble.mp4',
    playback_speed: float = 1.0,
):
    """
    Play back every instance of a recorded ensemble on one set of axes.

    Parameters
    ----------
    results_file : str
        Recording written by `simulator.simulate_chain`.
    save_video : bool
        Whether to save animation as video.
    video_filename : str
        Output video filename.
    playback_speed : float
        Relative playback multiplier (>1 faster, <1 slower).
    """

    print("Loading simulation results...")
    if not Path(results_file).is_file():
        print(f"Error: {results_file} not found. Please run simulator.py first.")
        return

    t, x, y, N, M = load_results(results_file)
    Frame = len(t)
    anchor = (float(x[0, 0, 0]), float(y[0, 0, 0]))
    axis_limit = max(1.0, 1.1 * chain_reach(x, y))
    render_fps, actual_speed = _render_fps(playback_speed)
    print(f"Loaded {Frame} frames for {M} chains with {N} joints")

    fig, ax, dpi = _setup_axes(axis_limit, anchor)
    _draw_anchor(ax, anchor)

    chain_points = []  # Joint markers
    chain_threads = []  # Connecting segments

    for _ in range(M):
        point, = ax.plot([], [], 'o', markersize=5, color=JOINT_COLOR, alpha=0.6, zorder=2)
        thread, = ax.plot([], [], '-', linewidth=1, color=THREAD_COLOR, alpha=0.6, zorder=1)
        chain_points.append(point)
        chain_threads.append(thread)

    def init():
        """Initialize animation"""
        for point in chain_points:
            point.set_data([], [])
        for thread in chain_threads:
            thread.set_data([], [])
        return chain_points + chain_threads

    def update(frame):
        """Update animation frame"""
        for k in range(M):
            chain_points[k].set_data(x[frame, 1:, k], y[frame, 1:, k])
            chain_threads[k].set_data(x[frame, :, k], y[frame, :, k])

        if (frame + 1) % 30 == 0:
            print(f'Animating: {100 * (frame + 1) / Frame:.1f}%', end='\r')

        return chain_points + chain_threads

    print(f"Creating animation at {render_fps} fps (~{actual_speed:.2f}x speed)...")
    anim = FuncAnimation(
        fig,
        update,
        frames=Frame,
        init_func=init,
        blit=True,
        interval=1000 / render_fps,
    )
    _finish(anim, fig, save_video, video_filename, render_fps, dpi)


if __name__ == '__main__':
    animate_chain(num_joints=3, save_video=False)
