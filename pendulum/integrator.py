"""Fixed-step RK4 integrator with per-frame sub-stepping.

One animation frame's dt is split into SUB_STEPS equal classical RK4
steps over the vector [a1, da1, a2, da2]. Angles are never wrapped here;
wrapping would break velocity continuity across the +/-pi seam.
"""

from __future__ import annotations

import numpy as np

from simulation import DoublePendulumParams, PendulumState, derivatives

# RK4 updates per frame
SUB_STEPS = 5

# Upper bound on a single frame's dt (a stalled host must not produce a
# destabilizing jump)
MAX_FRAME_DT = 0.05


def clamp_dt(dt: float) -> float:
    """Clamp a frame dt from above. No lower bound; dt=0 is a no-op step."""
    return min(dt, MAX_FRAME_DT)


def _vector_field(y: np.ndarray, params: DoublePendulumParams) -> np.ndarray:
    return np.array(derivatives(y[0], y[1], y[2], y[3], params), dtype=np.float64)


def rk4_step(
    y: np.ndarray, params: DoublePendulumParams, h: float,
) -> np.ndarray:
    """Advance the state vector by one classical RK4 step of size h.

    Returns a new array; the input is not mutated.
    """
    k1 = _vector_field(y, params)
    k2 = _vector_field(y + 0.5 * h * k1, params)
    k3 = _vector_field(y + 0.5 * h * k2, params)
    k4 = _vector_field(y + h * k3, params)
    return y + (h / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def step(
    state: PendulumState, params: DoublePendulumParams, dt: float,
) -> None:
    """Advance ``state`` in place by exactly dt using SUB_STEPS RK4 steps.

    The state is written back only after all sub-steps succeed, so a
    SingularConfigurationError leaves it unchanged.
    """
    h = dt / SUB_STEPS
    y = state.as_array()
    for _ in range(SUB_STEPS):
        y = rk4_step(y, params, h)
    state.set_from_array(y)
