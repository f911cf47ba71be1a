"""Interactive pendulum session: the only writer of params and state.

A host (GUI, CLI, notebook) owns the frame loop and calls advance(dt)
once per frame. Parameter edits, drags, reset, and start/stop all go
through PendulumSession so the reference energy stays consistent.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import asdict
from typing import NamedTuple

from simulation import (
    DoublePendulumParams, PendulumState, positions, wrap_angle,
)
from pendulum.energy import (
    EnergyReadout, energy_readout, rescale_velocities, total_energy,
)
from pendulum.integrator import clamp_dt, step

logger = logging.getLogger(__name__)

DEFAULT_PARAMS = DoublePendulumParams()

BOB_IDS = ("a1", "a2")

# Pick tolerance in world units (0.05 clip-space units at a 0.3 world-to-clip scale)
BOB_PICK_RADIUS = 0.05 / 0.3


class FrameSnapshot(NamedTuple):
    """Everything a renderer needs for one frame."""

    state: PendulumState
    positions: tuple[float, float, float, float]  # (x1, y1, x2, y2)
    wrapped_angles: tuple[float, float]
    energy: EnergyReadout
    reference_energy: float | None
    current_energy: float


def _check_finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {value!r}")
    return value


def _check_bob(bob_id: str) -> str:
    if bob_id not in BOB_IDS:
        raise ValueError(f"Unknown bob {bob_id!r}; expected one of {BOB_IDS}")
    return bob_id


class PendulumSession:
    """Parameters, state, and reference energy for one running pendulum."""

    def __init__(self, params=None, state=None):
        self.params = params if params is not None else DoublePendulumParams()
        self.state = state if state is not None else PendulumState()
        self.initial_energy: float | None = None
        self.running = True
        self.dragging: str | None = None
        self._reset_listeners: list[Callable[[], None]] = []

    # -- Parameter setters --

    def set_mass1(self, value: float) -> None:
        self._set_and_rescale("m1", value)

    def set_mass2(self, value: float) -> None:
        self._set_and_rescale("m2", value)

    def set_length1(self, value: float) -> None:
        self._set_and_rescale("l1", value)

    def set_length2(self, value: float) -> None:
        self._set_and_rescale("l2", value)

    def set_gravity(self, value: float) -> None:
        """Set g. Energy is not rescaled; the reference is kept as-is."""
        self.params.g = _check_finite("g", value)
        logger.debug("g = %s", self.params.g)

    def _set_and_rescale(self, name: str, value: float) -> None:
        setattr(self.params, name, _check_finite(name, value))
        logger.debug("%s = %s", name, getattr(self.params, name))
        self.rescale()

    def rescale(self) -> bool:
        """Restore the reference energy after an edit. No-op before capture."""
        if self.initial_energy is None:
            return False
        return rescale_velocities(self.state, self.params, self.initial_energy)

    # -- Reset --

    def add_reset_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run on reset (e.g. to clear a renderer's trail)."""
        self._reset_listeners.append(callback)

    def reset(self) -> None:
        """Return to both rods horizontal at rest with default parameters."""
        self.state.a1 = self.state.a2 = math.pi / 2
        self.state.da1 = self.state.da2 = 0.0
        self.initial_energy = total_energy(self.state, self.params)
        logger.info("Reset; reference energy %.6f", self.initial_energy)

        for callback in self._reset_listeners:
            callback()

        defaults = asdict(DEFAULT_PARAMS)
        self.set_mass1(defaults["m1"])
        self.set_mass2(defaults["m2"])
        self.set_length1(defaults["l1"])
        self.set_length2(defaults["l2"])
        self.set_gravity(defaults["g"])

    # -- Dragging --

    def bob_positions(self) -> dict[str, tuple[float, float]]:
        x1, y1, x2, y2 = positions(self.state, self.params)
        return {"a1": (float(x1), float(y1)), "a2": (float(x2), float(y2))}

    def pick_bob(self, x: float, y: float, radius: float = BOB_PICK_RADIUS):
        """Return the id of the bob closest to (x, y) within radius, else None."""
        best, best_dist = None, radius
        for bob_id, (bx, by) in self.bob_positions().items():
            dist = math.hypot(bx - x, by - y)
            if dist < best_dist:
                best, best_dist = bob_id, dist
        return best

    def begin_drag(self, bob_id: str) -> None:
        self.dragging = _check_bob(bob_id)

    def update_drag(self, bob_id: str, x: float, y: float) -> None:
        """Point the dragged rod at (x, y) and stop the whole system.

        (x, y) is the pointer in world units relative to the fixed pivot,
        y up. Both rods take their angle from that same origin.
        """
        angle = math.atan2(x, -y)
        setattr(self.state, _check_bob(bob_id), angle)
        self.state.da1 = 0.0
        self.state.da2 = 0.0

    def end_drag(self) -> None:
        # Energy injected by the drag is accepted until the next reset
        self.dragging = None

    # -- Frame loop --

    def toggle_running(self) -> bool:
        self.running = not self.running
        logger.debug("running = %s", self.running)
        return self.running

    def advance(self, dt: float) -> FrameSnapshot:
        """Per-frame entry point for the host's scheduler."""
        if self.initial_energy is None:
            self.initial_energy = total_energy(self.state, self.params)
            logger.info("Captured reference energy %.6f", self.initial_energy)

        if self.running and self.dragging is None:
            step(self.state, self.params, clamp_dt(dt))

        return self.snapshot()

    def snapshot(self) -> FrameSnapshot:
        x1, y1, x2, y2 = positions(self.state, self.params)
        return FrameSnapshot(
            state=self.state.copy(),
            positions=(float(x1), float(y1), float(x2), float(y2)),
            wrapped_angles=(wrap_angle(self.state.a1), wrap_angle(self.state.a2)),
            energy=energy_readout(self.state, self.params),
            reference_energy=self.initial_energy,
            current_energy=total_energy(self.state, self.params),
        )
