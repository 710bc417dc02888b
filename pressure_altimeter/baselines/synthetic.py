"""
Synthetic pressure traces for offline filter tuning.

A piecewise-linear altitude profile is sampled at a nominal rate with
jittered intervals, converted to pressure through the standard atmosphere
and corrupted with Gaussian sensor noise.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ..altimeter import STANDARD_PRESSURE_HPA
from ..altitude import FT_PER_M, altitude_to_pressure

# (time_s, altitude_ft) knots: ground, climb at ~500 ft/min, level, descend.
DEFAULT_PROFILE: Tuple[Tuple[float, float], ...] = (
    (0.0, 0.0),
    (30.0, 0.0),
    (150.0, 1000.0),
    (210.0, 1000.0),
    (330.0, 0.0),
)


@dataclass
class SyntheticTrace:
    time: np.ndarray            # seconds, strictly increasing
    true_altitude_ft: np.ndarray
    true_pressure_hpa: np.ndarray
    pressure_hpa: np.ndarray    # noisy sensor readings


def make_trace(profile: Sequence[Tuple[float, float]] = DEFAULT_PROFILE,
               rate_hz: float = 20.0,
               noise_std: float = 0.2,
               jitter: float = 0.3,
               reference_hpa: float = STANDARD_PRESSURE_HPA,
               seed: Optional[int] = 42) -> SyntheticTrace:
    """Sample a profile as a sensor would.

    Parameters
    ----------
    profile : sequence of (time_s, altitude_ft)
        Knots of the altitude profile; times must be increasing.
    rate_hz : float
        Nominal sample rate.
    noise_std : float
        Standard deviation of the pressure noise, hPa.
    jitter : float
        Relative spread of the sample interval, 0 for a fixed cadence.
    reference_hpa : float
        Sea level pressure the profile is flown against.
    seed : Optional[int]
        RNG seed.
    """
    knots = np.asarray(profile, dtype=np.float64)
    if knots.ndim != 2 or knots.shape[1] != 2 or len(knots) < 2:
        raise ValueError("profile must be at least two (time, altitude) pairs")
    if np.any(np.diff(knots[:, 0]) <= 0):
        raise ValueError("profile times must be strictly increasing")
    if rate_hz <= 0:
        raise ValueError(f"rate_hz must be > 0, got {rate_hz}")
    if not 0 <= jitter < 1:
        raise ValueError(f"jitter must be in [0, 1), got {jitter}")

    rng = np.random.default_rng(seed)
    nominal_dt = 1.0 / rate_hz
    duration = knots[-1, 0] - knots[0, 0]
    n = int(duration * rate_hz) + 1

    intervals = nominal_dt * (1.0 + jitter * rng.uniform(-1.0, 1.0, size=n - 1))
    t = knots[0, 0] + np.concatenate([[0.0], np.cumsum(intervals)])
    t = t[t <= knots[-1, 0]]

    altitude_ft = np.interp(t, knots[:, 0], knots[:, 1])
    true_pressure = altitude_to_pressure(reference_hpa, altitude_ft / FT_PER_M)
    noisy = true_pressure + rng.normal(0.0, noise_std, size=len(t))

    return SyntheticTrace(
        time=t,
        true_altitude_ft=altitude_ft,
        true_pressure_hpa=np.asarray(true_pressure),
        pressure_hpa=noisy,
    )
