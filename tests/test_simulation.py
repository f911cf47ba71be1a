"""Tests for simulation.py: derivatives, positions, angle wrapping, reference solver."""

import math

import numpy as np
import pytest

from simulation import (
    DoublePendulumParams, PendulumState, SingularConfigurationError,
    derivatives, positions, simulate, wrap_angle,
)
from pendulum.energy import total_energy


class TestDerivatives:
    """Test the derivatives function for known states."""

    def test_zero_state_zero_derivatives(self):
        """At rest hanging straight down, angular accelerations should be zero."""
        params = DoublePendulumParams()
        d = derivatives(0.0, 0.0, 0.0, 0.0, params)
        assert d[0] == 0.0
        assert d[2] == 0.0
        assert abs(d[1]) < 1e-10
        assert abs(d[3]) < 1e-10

    def test_velocity_components_pass_through(self):
        params = DoublePendulumParams()
        d = derivatives(0.5, 0.3, 1.0, -0.2, params)
        assert d[0] == 0.3
        assert d[2] == -0.2

    def test_horizontal_start(self):
        """Both rods horizontal, at rest: rod 1 falls, rod 2 stays straight.

        With delta=0 the coupling cancels exactly: dda1 = -g/l1, dda2 = 0.
        """
        params = DoublePendulumParams()
        d = derivatives(math.pi / 2, 0.0, math.pi / 2, 0.0, params)
        assert d[1] == pytest.approx(-params.g / params.l1)
        assert d[3] == pytest.approx(0.0, abs=1e-12)

    def test_single_bob_limit(self):
        """A negligible second mass leaves rod 1 as a simple pendulum."""
        params = DoublePendulumParams(m1=1.0, m2=1e-12)
        a1 = 0.7
        d = derivatives(a1, 0.0, 0.2, 0.0, params)
        assert d[1] == pytest.approx(-params.g / params.l1 * math.sin(a1), rel=1e-9)

    def test_matches_alternate_form(self):
        """Cross-check against the textbook form with delta = a1 - a2."""
        params = DoublePendulumParams(m1=1.3, m2=0.7, l1=1.1, l2=0.9, g=9.81)
        a1, da1, a2, da2 = 0.4, 1.2, -0.9, -0.5
        m1, m2, l1, l2, g = params.m1, params.m2, params.l1, params.l2, params.g
        delta = a1 - a2
        denom = 2 * m1 + m2 - m2 * math.cos(2 * delta)
        alpha1 = (
            -g * (2 * m1 + m2) * math.sin(a1)
            - m2 * g * math.sin(a1 - 2 * a2)
            - 2 * math.sin(delta) * m2
            * (da2**2 * l2 + da1**2 * l1 * math.cos(delta))
        ) / (l1 * denom)
        alpha2 = (
            2 * math.sin(delta) * (
                da1**2 * l1 * (m1 + m2)
                + g * (m1 + m2) * math.cos(a1)
                + da2**2 * l2 * m2 * math.cos(delta)
            )
        ) / (l2 * denom)

        d = derivatives(a1, da1, a2, da2, params)
        assert d[1] == pytest.approx(alpha1, rel=1e-10)
        assert d[3] == pytest.approx(alpha2, rel=1e-10)

    def test_zero_first_mass_aligned_is_singular(self):
        params = DoublePendulumParams(m1=0.0)
        with pytest.raises(SingularConfigurationError):
            derivatives(0.3, 0.0, 0.3, 0.0, params)

    def test_zero_second_length_is_singular(self):
        params = DoublePendulumParams(l2=0.0)
        with pytest.raises(SingularConfigurationError):
            derivatives(0.3, 0.0, 1.0, 0.0, params)

    def test_zero_first_mass_misaligned_is_regular(self):
        params = DoublePendulumParams(m1=0.0)
        d = derivatives(0.3, 0.0, 1.0, 0.0, params)
        assert all(np.isfinite(d))


class TestSimulate:
    """Test the DOP853 reference trajectory."""

    def test_returns_correct_shapes(self):
        params = DoublePendulumParams()
        t, states = simulate(params, PendulumState(1.0, 0.0, 1.0, 0.0),
                             t_end=1.0, dt=0.01)
        assert t.ndim == 1
        assert states.shape == (len(t), 4)
        assert t[-1] == pytest.approx(1.0)

    def test_initial_conditions_preserved(self):
        params = DoublePendulumParams()
        start = PendulumState(1.0, 0.1, 0.5, -0.2)
        t, states = simulate(params, start, t_end=1.0)
        np.testing.assert_allclose(states[0], [1.0, 0.1, 0.5, -0.2], atol=1e-12)
        assert start == PendulumState(1.0, 0.1, 0.5, -0.2)

    def test_energy_drift_within_tolerance(self):
        params = DoublePendulumParams()
        t, states = simulate(params, PendulumState(), t_end=10.0, dt=0.01)
        energies = np.array([total_energy(PendulumState(*s), params) for s in states])
        drift = np.max(np.abs(energies - energies[0]))
        assert drift < 1e-6, f"Energy drift {drift} exceeds tolerance"


class TestPositions:
    """Test Cartesian coordinate conversion."""

    def test_straight_down(self):
        params = DoublePendulumParams(l1=1.0, l2=1.0)
        x1, y1, x2, y2 = positions(PendulumState(0.0, 0.0, 0.0, 0.0), params)
        assert abs(x1) < 1e-10
        assert abs(y1 - (-1.0)) < 1e-10
        assert abs(x2) < 1e-10
        assert abs(y2 - (-2.0)) < 1e-10

    def test_horizontal(self):
        """Default reset pose: both rods pointing right."""
        params = DoublePendulumParams()
        x1, y1, x2, y2 = positions(PendulumState(), params)
        assert x1 == pytest.approx(1.5)
        assert y1 == pytest.approx(0.0, abs=1e-12)
        assert x2 == pytest.approx(3.0)
        assert y2 == pytest.approx(0.0, abs=1e-12)


class TestWrapAngle:
    """wrap_angle maps into (-pi, pi] and is idempotent."""

    @pytest.mark.parametrize("angle", [
        0.0, 1.0, -1.0, math.pi, -math.pi, 2 * math.pi, -2 * math.pi,
        3 * math.pi, -3 * math.pi, 7.5, -7.5, 1e6, -1e6, -1e-20, 1e-300,
    ])
    def test_range_and_idempotence(self, angle):
        w = wrap_angle(angle)
        assert -math.pi < w <= math.pi
        assert wrap_angle(w) == w

    def test_random_values(self):
        rng = np.random.default_rng(1)
        for angle in rng.uniform(-100.0, 100.0, 2000):
            w = wrap_angle(float(angle))
            assert -math.pi < w <= math.pi
            assert wrap_angle(w) == w
            assert math.cos(w) == pytest.approx(math.cos(angle), abs=1e-9)
            assert math.sin(w) == pytest.approx(math.sin(angle), abs=1e-9)

    def test_minus_pi_maps_to_pi(self):
        assert wrap_angle(-math.pi) == pytest.approx(math.pi)

    def test_in_range_unchanged(self):
        assert wrap_angle(0.25) == 0.25
        assert wrap_angle(math.pi) == math.pi
