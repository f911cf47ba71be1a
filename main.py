"""Headless frame driver for the double pendulum.

Plays the role of a renderer's per-frame callback: builds a session,
applies parameter and angle overrides, then calls advance(1/fps)
repeatedly and logs angles and energies.

Usage:
    python main.py [--frames 600] [--fps 60] [--m2 2.0] [--reference]
"""

from __future__ import annotations

import argparse
import logging
import sys

import numpy as np

from simulation import PendulumState, SingularConfigurationError, simulate
from pendulum.energy import total_energy
from pendulum.session import PendulumSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the double pendulum without a display and log its energy.",
    )
    parser.add_argument("--frames", type=int, default=600,
                        help="Number of frames to advance (default: 600)")
    parser.add_argument("--fps", type=float, default=60.0,
                        help="Frame rate; each frame advances 1/fps (default: 60)")
    for name, label in (("m1", "Mass 1"), ("m2", "Mass 2"),
                        ("l1", "Length 1"), ("l2", "Length 2"), ("g", "Gravity")):
        parser.add_argument(f"--{name}", type=float, default=None,
                            help=f"{label} (default: reset value)")
    parser.add_argument("--a1", type=float, default=None,
                        help="Start angle of rod 1 in radians, set as a drag")
    parser.add_argument("--a2", type=float, default=None,
                        help="Start angle of rod 2 in radians, set as a drag")
    parser.add_argument("--log-every", type=int, default=60,
                        help="Log a status line every N frames (default: 60)")
    parser.add_argument("--reference", action="store_true",
                        help="Also integrate with DOP853 and compare final states")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def _drag_to(session: PendulumSession, bob_id: str, angle: float) -> None:
    session.begin_drag(bob_id)
    session.update_drag(bob_id, np.sin(angle), -np.cos(angle))
    session.end_drag()


def run(args: argparse.Namespace) -> int:
    # Fresh session: no reference energy until the first frame, so the
    # overrides below are written without rescaling
    session = PendulumSession()

    setters = {
        "m1": session.set_mass1,
        "m2": session.set_mass2,
        "l1": session.set_length1,
        "l2": session.set_length2,
        "g": session.set_gravity,
    }
    for name, setter in setters.items():
        value = getattr(args, name)
        if value is not None:
            setter(value)

    if args.a1 is not None:
        _drag_to(session, "a1", args.a1)
    if args.a2 is not None:
        _drag_to(session, "a2", args.a2)

    start_state = session.state.copy()
    dt = 1.0 / args.fps
    snapshot = session.snapshot()

    frame = 0
    try:
        for frame in range(1, args.frames + 1):
            snapshot = session.advance(dt)
            if args.log_every > 0 and frame % args.log_every == 0:
                w1, w2 = snapshot.wrapped_angles
                logger.info(
                    "t=%7.3f  a1=%+.4f a2=%+.4f  KE=%.4f PE=%.4f E=%.4f  dE=%+.3e",
                    frame * dt, w1, w2,
                    snapshot.energy.kinetic, snapshot.energy.potential,
                    snapshot.energy.total,
                    snapshot.current_energy - snapshot.reference_energy,
                )
    except SingularConfigurationError as exc:
        logger.error("Integration stopped at frame %d: %s", frame, exc)
        return 1

    if snapshot.reference_energy is not None:
        drift = snapshot.current_energy - snapshot.reference_energy
        logger.info("Final energy drift after %d frames: %+.3e", args.frames, drift)

    if args.reference:
        t, states = simulate(session.params, start_state,
                             t_end=args.frames * dt, dt=dt)
        energies = np.array([
            total_energy(PendulumState(*row), session.params) for row in states
        ])
        diff = np.abs(states[-1] - session.state.as_array())
        logger.info(
            "DOP853 reference: max energy drift %.3e, final state difference %s",
            np.max(np.abs(energies - energies[0])), np.array2string(diff, precision=3),
        )

    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
