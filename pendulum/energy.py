"""Mechanical energy of the double pendulum and velocity rescaling.

Two potential-energy conventions coexist and must not be mixed:

- reference form, V = 0 at the pivot height:
  V = -(m1+m2)*g*l1*cos(a1) - m2*g*l2*cos(a2)
  Used by total_energy() and rescale_velocities(), i.e. everything that
  compares against a stored reference energy.
- display form, V = 0 with both bobs hanging at rest:
  V = (m1+m2)*g*l1*(1-cos(a1)) + m2*g*l2*(1-cos(a2))
  Used only for the per-frame readout.

The two differ by the constant (m1+m2)*g*l1 + m2*g*l2.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

from simulation import DoublePendulumParams, PendulumState

logger = logging.getLogger(__name__)


class EnergyReadout(NamedTuple):
    """Per-frame energy values for display (zero-at-rest potential)."""

    kinetic: float
    potential: float
    total: float


def kinetic_energy(state: PendulumState, params: DoublePendulumParams) -> float:
    m1, m2, l1, l2 = params.m1, params.m2, params.l1, params.l2
    v1 = l1 * state.da1
    v2 = l2 * state.da2
    return float(
        0.5 * m1 * v1**2
        + 0.5 * m2 * (
            v1**2 + v2**2
            + 2 * l1 * l2 * state.da1 * state.da2 * np.cos(state.a1 - state.a2)
        )
    )


def reference_potential_energy(
    state: PendulumState, params: DoublePendulumParams,
) -> float:
    """Potential energy measured from the pivot height."""
    m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g
    return float(
        -(m1 + m2) * g * l1 * np.cos(state.a1) - m2 * g * l2 * np.cos(state.a2)
    )


def display_potential_energy(
    state: PendulumState, params: DoublePendulumParams,
) -> float:
    """Potential energy measured from the hanging rest configuration."""
    m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g
    return float(
        (m1 + m2) * g * l1 * (1 - np.cos(state.a1))
        + m2 * g * l2 * (1 - np.cos(state.a2))
    )


def total_energy(state: PendulumState, params: DoublePendulumParams) -> float:
    """Total mechanical energy (T + V) in the reference form."""
    return kinetic_energy(state, params) + reference_potential_energy(state, params)


def energy_readout(
    state: PendulumState, params: DoublePendulumParams,
) -> EnergyReadout:
    kinetic = kinetic_energy(state, params)
    potential = display_potential_energy(state, params)
    return EnergyReadout(kinetic, potential, kinetic + potential)


def rescale_velocities(
    state: PendulumState,
    params: DoublePendulumParams,
    target_energy: float,
) -> bool:
    """Scale both angular velocities so total_energy() equals target_energy.

    If the target lies below the current potential energy it cannot be
    reached; both velocities are set to zero instead. A state at rest is
    left alone since there is no direction to scale along.

    Returns True if the state was modified.
    """
    target_kinetic = target_energy - reference_potential_energy(state, params)

    if target_kinetic < 0:
        logger.warning(
            "Target energy %.6f unreachable (%.6f below potential); "
            "stopping both bobs", target_energy, -target_kinetic,
        )
        state.da1 = 0.0
        state.da2 = 0.0
        return True

    current_kinetic = kinetic_energy(state, params)
    if current_kinetic == 0:
        logger.debug("Rescale skipped: pendulum at rest")
        return False

    scale = np.sqrt(target_kinetic / current_kinetic)
    state.da1 = float(state.da1 * scale)
    state.da2 = float(state.da2 * scale)
    logger.debug("Rescaled velocities by %.6f", scale)
    return True
