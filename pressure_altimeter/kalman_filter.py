"""
Kalman Filter for barometric pressure smoothing.

Implements a Constant Velocity (CV) model over a scalar quantity.
- Prediction Phase: projects pressure linearly using its rate of change over dt.
- Correction Phase: blends in a scalar pressure measurement.

State vector: [pressure, d_pressure/dt]

The sample interval dt is supplied on every update, so irregular sensor
callbacks are handled without resampling.
"""

from __future__ import annotations
import math
import numpy as np
from typing import Optional
from dataclasses import dataclass, replace


@dataclass
class KalmanFilterParams:
    """Parameters for Kalman Filter."""
    # Larger than the noise seen in recorded data, which looks more
    # Laplacian than Gaussian.
    process_variance: float = 0.0075      # pressure acceleration noise, per second
    measurement_variance: float = 0.05    # default pressure measurement noise
    initial_pos_uncertainty: float = 1.0
    initial_vel_uncertainty: float = 0.1

    def __post_init__(self):
        if not self.process_variance > 0:
            raise ValueError(f"process_variance must be > 0, got {self.process_variance}")
        if not self.measurement_variance >= 0:
            raise ValueError(f"measurement_variance must be >= 0, got {self.measurement_variance}")
        if not (self.initial_pos_uncertainty > 0 and self.initial_vel_uncertainty > 0):
            raise ValueError("initial uncertainties must be > 0")


@dataclass(frozen=True)
class FilterState:
    """Estimate and symmetric covariance of (position, velocity)."""
    position: float
    velocity: float
    pxx: float
    pxv: float
    pvv: float
    process_variance: float

    @property
    def covariance(self) -> np.ndarray:
        return np.array([[self.pxx, self.pxv], [self.pxv, self.pvv]], dtype=np.float64)

    @property
    def determinant(self) -> float:
        return self.pxx * self.pvv - self.pxv * self.pxv


def transition_matrix(dt: float) -> np.ndarray:
    """F: p_new = p_old + v * dt"""
    return np.array([[1.0, dt], [0.0, 1.0]], dtype=np.float64)


def process_noise(dt: float, q: float) -> np.ndarray:
    """Q: Process Noise Covariance (Discrete White Noise Acceleration)"""
    dt2 = dt**2 / 2
    dt4 = dt**4 / 4
    return np.array([
        [dt4 * q, dt2 * q],
        [dt2 * q, dt * q],
    ], dtype=np.float64)


def _check_dt(dt: float) -> None:
    if not (math.isfinite(dt) and dt >= 0):
        raise ValueError(f"dt must be finite and >= 0, got {dt}")


def _check_variance(measurement_variance: float) -> None:
    if not (math.isfinite(measurement_variance) and measurement_variance >= 0):
        raise ValueError(f"measurement_variance must be finite and >= 0, got {measurement_variance}")


def _check_measurement(measurement: float) -> None:
    if not math.isfinite(measurement):
        raise ValueError(f"measurement must be finite, got {measurement}")


def initial_state(initial_value: float, params: KalmanFilterParams) -> FilterState:
    """Known position, zero velocity, diagonal prior uncertainty."""
    _check_measurement(initial_value)
    return FilterState(
        position=float(initial_value),
        velocity=0.0,
        pxx=params.initial_pos_uncertainty,
        pxv=0.0,
        pvv=params.initial_vel_uncertainty,
        process_variance=params.process_variance,
    )


def predict(state: FilterState, dt: float) -> FilterState:
    """Time Update (A priori)"""
    _check_dt(dt)
    q = state.process_variance
    dt2 = dt * dt
    return replace(
        state,
        position=state.position + state.velocity * dt,
        pxx=state.pxx + 2 * dt * state.pxv + dt2 * state.pvv + dt2 * dt2 / 4 * q,
        pxv=state.pxv + dt * state.pvv + dt2 / 2 * q,
        pvv=state.pvv + dt * q,
    )


def correct(state: FilterState, measurement: float, measurement_variance: float) -> FilterState:
    """Measurement Update (A posteriori)"""
    _check_measurement(measurement)
    _check_variance(measurement_variance)
    residual = measurement - state.position  # Innovation
    s = state.pxx + measurement_variance     # Innovation Covariance
    if s == 0:
        # Noiseless measurement of an already certain state: take the measurement.
        kx, kv = 1.0, 0.0
    else:
        kx, kv = state.pxx / s, state.pxv / s

    pxx = state.pxx - kx * state.pxx
    pxv = state.pxv - kx * state.pxv
    pvv = state.pvv - kv * state.pxv
    return replace(
        state,
        position=state.position + kx * residual,
        velocity=state.velocity + kv * residual,
        # rounding can leave a tiny negative on the diagonal
        pxx=max(pxx, 0.0),
        pxv=pxv,
        pvv=max(pvv, 0.0),
    )


def update(state: FilterState, measurement: float, measurement_variance: float, dt: float) -> FilterState:
    """Predict over dt, then correct with the measurement."""
    # check everything before predicting; a rejected call leaves the state untouched
    _check_measurement(measurement)
    _check_dt(dt)
    _check_variance(measurement_variance)
    return correct(predict(state, dt), measurement, measurement_variance)


class KalmanFilter:
    def __init__(self, params: Optional[KalmanFilterParams] = None):
        self.params = params or KalmanFilterParams()
        self.state: Optional[FilterState] = None

    def reset(self, initial_value: float) -> FilterState:
        """Start a new tracking session at a known value."""
        self.state = initial_state(initial_value, self.params)
        return self.state

    def _require_state(self) -> FilterState:
        if self.state is None:
            raise RuntimeError("Filter not initialized; call reset() first.")
        return self.state

    def predict(self, dt: float) -> FilterState:
        """A priori state after dt, without changing the filter."""
        return predict(self._require_state(), dt)

    def update(self, measurement: float, measurement_variance: Optional[float] = None, *, dt: float) -> FilterState:
        """Measurement update after dt seconds. Uses the default noise when no variance is given."""
        state = self._require_state()
        if measurement_variance is None:
            measurement_variance = self.params.measurement_variance
        self.state = update(state, measurement, measurement_variance, dt)
        return self.state

    @property
    def position(self) -> float:
        return self._require_state().position

    @property
    def velocity(self) -> float:
        return self._require_state().velocity

    @property
    def covariance(self) -> np.ndarray:
        return self._require_state().covariance

    def __repr__(self) -> str:
        if self.state is None:
            return "KalmanFilter(uninitialized)"
        return (f"KalmanFilter(position={self.state.position:.4f}, "
                f"velocity={self.state.velocity:.5f}, pxx={self.state.pxx:.3g})")
