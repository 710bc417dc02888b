"""
Host-side altimeter session.

Owns one pressure KalmanFilter and the altimeter setting, derives dt from a
monotonic clock and turns the filtered pressure into an altitude read-out.
Not thread-safe: sensor callbacks and lifecycle calls must be serialised by
the caller.
"""

from __future__ import annotations
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .altitude import inhg_to_hpa, pressure_to_feet
from .kalman_filter import FilterState, KalmanFilter, KalmanFilterParams

# Altimeter setting range and standard day, in hundredths of inHg.
SETTING_MIN = 2810
SETTING_MAX = 3100
SETTING_STANDARD = 2992

STANDARD_PRESSURE_HPA = inhg_to_hpa(SETTING_STANDARD / 100.0)  # 1013.0912


class AltimeterSetting:
    """Reference sea level pressure in inches of mercury.

    Kept as integer hundredths so stepping up and down never drifts, since
    multiples of 0.01 have no finite binary representation.
    """

    def __init__(self, inhg: float = SETTING_STANDARD / 100.0):
        if not (math.isfinite(inhg) and SETTING_MIN / 100.0 <= inhg <= SETTING_MAX / 100.0):
            raise ValueError(
                f"altimeter setting {inhg} inHg outside "
                f"[{SETTING_MIN / 100:.2f}, {SETTING_MAX / 100:.2f}]"
            )
        self._set(round(100.0 * inhg))

    @classmethod
    def restore(cls, inhg: Optional[float]) -> "AltimeterSetting":
        """Rebuild a saved setting, falling back on the standard day if it is missing or bogus."""
        if inhg is None or not math.isfinite(inhg):
            return cls()
        try:
            return cls(inhg)
        except ValueError:
            return cls()

    def _set(self, hundredths: int) -> None:
        self._hundredths = hundredths
        # converted once per change, not once per altitude computation
        self._hpa = inhg_to_hpa(hundredths / 100.0)

    @property
    def inhg(self) -> float:
        return self._hundredths / 100.0

    @property
    def hpa(self) -> float:
        return self._hpa

    def increment(self) -> bool:
        if self._hundredths >= SETTING_MAX:
            return False
        self._set(self._hundredths + 1)
        return True

    def decrement(self) -> bool:
        if self._hundredths <= SETTING_MIN:
            return False
        self._set(self._hundredths - 1)
        return True

    def __eq__(self, other) -> bool:
        return isinstance(other, AltimeterSetting) and other._hundredths == self._hundredths

    def __repr__(self) -> str:
        return f"AltimeterSetting({self.inhg:.2f} inHg)"


def fractional(value: float) -> float:
    """Fractional part, truncating toward zero (-1.25 -> -0.25)."""
    return math.modf(value)[0]


def needle_angles(altitude_ft: float) -> Tuple[float, float, float]:
    """Angles in degrees of the 100 ft, 1000 ft and 10000 ft needles."""
    return (
        360.0 * fractional(altitude_ft / 1000.0),
        360.0 * fractional(altitude_ft / 10000.0),
        360.0 * fractional(altitude_ft / 100000.0),
    )


def dial_angle(inhg: float) -> float:
    """Rotation of the pressure setting dial, in degrees."""
    return 100.0 * (SETTING_MAX / 100.0 - inhg)


@dataclass(frozen=True)
class Readout:
    raw_hpa: float
    filtered_hpa: float
    rate_hpa_per_s: float
    altitude_ft: float
    needles: Tuple[float, float, float]
    dial: float


class PressureAltimeter:
    def __init__(self,
                 params: Optional[KalmanFilterParams] = None,
                 setting: Optional[AltimeterSetting] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.filter = KalmanFilter(params)
        self.setting = setting or AltimeterSetting()
        self.clock = clock
        self.pressure_hpa = STANDARD_PRESSURE_HPA
        self.last_measurement_time: Optional[float] = None

    @property
    def params(self) -> KalmanFilterParams:
        return self.filter.params

    def resume(self) -> FilterState:
        """Begin a new tracking session from standard day pressure.

        The filter state does not survive suspension; only the setting does.
        The first sensor reading overwrites the placeholder, and without a
        sensor the altimeter shows zero on a standard day.
        """
        self.pressure_hpa = STANDARD_PRESSURE_HPA
        state = self.filter.reset(self.pressure_hpa)
        self.last_measurement_time = self.clock()
        return state

    def on_pressure(self, pressure_hpa: float, timestamp: Optional[float] = None) -> Readout:
        """Feed one raw sensor reading; timestamp defaults to the clock."""
        if self.last_measurement_time is None:
            raise RuntimeError("Altimeter not resumed; call resume() first.")
        now = self.clock() if timestamp is None else timestamp
        dt = now - self.last_measurement_time
        # raises ValueError for a clock running backwards, before anything is stored
        self.filter.update(pressure_hpa, self.params.measurement_variance, dt=dt)
        self.pressure_hpa = float(pressure_hpa)
        self.last_measurement_time = now
        return self.readout()

    def adjust_setting(self, steps: int) -> bool:
        """Move the setting by whole 0.01 inHg steps. Returns whether it changed."""
        step = self.setting.increment if steps > 0 else self.setting.decrement
        changed = False
        for _ in range(abs(steps)):
            if not step():
                break
            changed = True
        return changed

    @property
    def altitude_ft(self) -> float:
        return pressure_to_feet(self.setting.hpa, self.filter.position)

    def readout(self) -> Readout:
        altitude_ft = self.altitude_ft
        return Readout(
            raw_hpa=self.pressure_hpa,
            filtered_hpa=self.filter.position,
            rate_hpa_per_s=self.filter.velocity,
            altitude_ft=altitude_ft,
            needles=needle_angles(altitude_ft),
            dial=dial_angle(self.setting.inhg),
        )
