"""Double pendulum physics engine.

Implements the Lagrangian equations of motion for a double pendulum,
the mutable state they act on, and a high-accuracy reference trajectory
via SciPy's solve_ivp (DOP853) for validating the fixed-step integrator.

Angles are measured from the downward vertical. The state vector layout
used throughout is [a1, da1, a2, da2].
"""

import math
from dataclasses import dataclass

import numpy as np
from scipy.integrate import solve_ivp


class SingularConfigurationError(ArithmeticError):
    """Raised when the equations of motion have a zero denominator.

    Only reachable with a zero first mass and collinear rods, or with a
    zero rod length.
    """


@dataclass
class DoublePendulumParams:
    """Physical parameters of the double pendulum system."""

    m1: float = 1.0
    m2: float = 1.0
    l1: float = 1.5
    l2: float = 1.5
    g: float = 9.8


@dataclass
class PendulumState:
    """Generalized coordinates and angular velocities.

    Angles are unbounded; use wrap_angle() only for display.
    """

    a1: float = math.pi / 2
    da1: float = 0.0
    a2: float = math.pi / 2
    da2: float = 0.0

    def as_array(self):
        return np.array([self.a1, self.da1, self.a2, self.da2], dtype=np.float64)

    def set_from_array(self, y):
        self.a1, self.da1, self.a2, self.da2 = (float(v) for v in y)

    def copy(self):
        return PendulumState(self.a1, self.da1, self.a2, self.da2)


def derivatives(a1, da1, a2, da2, params):
    """Compute the four first-order ODEs for the double pendulum.

    Returns: (d_a1/dt, d_da1/dt, d_a2/dt, d_da2/dt)

    Raises SingularConfigurationError if either denominator is zero.
    """
    m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g

    delta = a2 - a1
    sin_delta = np.sin(delta)
    cos_delta = np.cos(delta)

    den1 = (m1 + m2) * l1 - m2 * l1 * cos_delta**2
    if den1 == 0:
        raise SingularConfigurationError(
            f"den1 is zero at a1={a1!r}, a2={a2!r} with {params}"
        )
    den2 = (l2 / l1) * den1
    if den2 == 0:
        raise SingularConfigurationError(f"den2 is zero with {params}")

    dda1 = (
        m2 * l1 * da1**2 * sin_delta * cos_delta
        + m2 * g * np.sin(a2) * cos_delta
        + m2 * l2 * da2**2 * sin_delta
        - (m1 + m2) * g * np.sin(a1)
    ) / den1

    dda2 = (
        -m2 * l2 * da2**2 * sin_delta * cos_delta
        + (m1 + m2) * g * np.sin(a1) * cos_delta
        - (m1 + m2) * l1 * da1**2 * sin_delta
        - (m1 + m2) * g * np.sin(a2)
    ) / den2

    return da1, dda1, da2, dda2


def simulate(params, state, t_end=10.0, dt=0.01):
    """Integrate from ``state`` with DOP853 and return uniformly-spaced results.

    The input state is not modified.

    Returns:
        t_array: 1D array of time values at uniform dt spacing, ending at t_end
        state_array: 2D array of shape (len(t_array), 4), columns [a1, da1, a2, da2]
    """
    n_steps = int(round(t_end / dt))
    t_eval = np.linspace(0.0, n_steps * dt, n_steps + 1)

    sol = solve_ivp(
        fun=lambda t, y: derivatives(y[0], y[1], y[2], y[3], params),
        t_span=(0.0, t_eval[-1]),
        y0=state.as_array(),
        method="DOP853",
        t_eval=t_eval,
        rtol=1e-12,
        atol=1e-12,
    )

    return sol.t, sol.y.T  # shape: (n_steps + 1, 4)


def positions(state, params):
    """Convert a single state to Cartesian coordinates.

    Returns (x1, y1, x2, y2) relative to the pivot, with y pointing up.
    """
    l1, l2 = params.l1, params.l2

    x1 = l1 * np.sin(state.a1)
    y1 = -l1 * np.cos(state.a1)

    x2 = x1 + l2 * np.sin(state.a2)
    y2 = y1 - l2 * np.cos(state.a2)

    return x1, y1, x2, y2


def wrap_angle(angle):
    """Map an angle into (-pi, pi]. Values already in range are returned as-is."""
    if -math.pi < angle <= math.pi:
        return angle
    wrapped = math.pi - (math.pi - angle) % (2 * math.pi)
    # (pi - angle) % 2pi can round up to exactly 2pi
    if wrapped <= -math.pi:
        wrapped += 2 * math.pi
    return wrapped
