"""Barometric altitude from the ISA troposphere relation.

See http://psas.pdx.edu/RocketScience/PressureAltitude_Derived.pdf

All functions accept floats or numpy arrays; scalar inputs give a float back.
Both pressures passed to a conversion must be in the same unit.
"""
from __future__ import annotations
import numpy as np

SLT_K = 288.15              # Sea level temperature.
TLAPSE_K_PER_M = -0.0065    # Linear temperature atmospheric lapse rate.
G_M_PER_S_PER_S = 9.80665   # Acceleration from gravity.
R_J_PER_KG_PER_K = 287.052  # Specific gas constant for air, US Standard Atmosphere edition.

PA_PER_INHG = 3386.0        # Pascals per inch of mercury.
PA_PER_HPA = 100.0
FT_PER_M = 3.2808399

FACTOR_M = SLT_K / TLAPSE_K_PER_M
EXPONENT = -TLAPSE_K_PER_M * R_J_PER_KG_PER_K / G_M_PER_S_PER_S


def _as_output(value: np.ndarray):
    return float(value) if np.ndim(value) == 0 else value


def _check_pressures(reference_pressure, measured_pressure=None):
    reference_pressure = np.asarray(reference_pressure, dtype=np.float64)
    if not np.all(reference_pressure > 0):
        raise ValueError(f"reference pressure must be > 0, got {reference_pressure}")
    if measured_pressure is None:
        return reference_pressure, None
    measured_pressure = np.asarray(measured_pressure, dtype=np.float64)
    if not np.all(measured_pressure >= 0):
        raise ValueError(f"measured pressure must be >= 0, got {measured_pressure}")
    return reference_pressure, measured_pressure


def pressure_to_altitude(reference_pressure, measured_pressure):
    """Altitude in metres of `measured_pressure` above the level where pressure is `reference_pressure`."""
    reference_pressure, measured_pressure = _check_pressures(reference_pressure, measured_pressure)
    altitude_m = FACTOR_M * (np.power(measured_pressure / reference_pressure, EXPONENT) - 1.0)
    return _as_output(altitude_m)


def pressure_to_feet(reference_pressure, measured_pressure):
    return _as_output(FT_PER_M * np.asarray(pressure_to_altitude(reference_pressure, measured_pressure)))


def altitude_to_pressure(reference_pressure, altitude_m):
    """Inverse of pressure_to_altitude."""
    reference_pressure, _ = _check_pressures(reference_pressure)
    ratio = 1.0 + np.asarray(altitude_m, dtype=np.float64) / FACTOR_M
    if not np.all(ratio >= 0):
        raise ValueError(f"altitude above the model's zero-pressure limit: {altitude_m}")
    return _as_output(reference_pressure * np.power(ratio, 1.0 / EXPONENT))


def inhg_to_hpa(inhg):
    return _as_output(np.asarray(inhg, dtype=np.float64) * PA_PER_INHG / PA_PER_HPA)


def hpa_to_inhg(hpa):
    return _as_output(np.asarray(hpa, dtype=np.float64) * PA_PER_HPA / PA_PER_INHG)
