"""Kalman-filtered barometric altimeter."""

from .kalman_filter import (
    FilterState,
    KalmanFilter,
    KalmanFilterParams,
)
from .altitude import (
    altitude_to_pressure,
    pressure_to_altitude,
    pressure_to_feet,
)
from .altimeter import AltimeterSetting, PressureAltimeter, Readout

__all__ = [
    "FilterState",
    "KalmanFilter",
    "KalmanFilterParams",
    "altitude_to_pressure",
    "pressure_to_altitude",
    "pressure_to_feet",
    "AltimeterSetting",
    "PressureAltimeter",
    "Readout",
]
