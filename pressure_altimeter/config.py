"""Configuration helpers for the pressure altimeter.
- Load YAML/JSON configs
- Dataclasses for filter tuning and replay settings
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
import json
import yaml

from .kalman_filter import KalmanFilterParams


def load_config(path: str | Path) -> dict:
    path = Path(path)
    if path.suffix in {".yml", ".yaml"}:
        return yaml.safe_load(path.read_text()) or {}
    elif path.suffix == ".json":
        return json.loads(path.read_text())
    else:
        raise ValueError(f"Unsupported config format: {path.suffix}")


def _known(cls, data: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class AltimeterConfig:
    filter: KalmanFilterParams = field(default_factory=KalmanFilterParams)
    setting_inhg: float = 29.92
    time_column: str = "time"
    pressure_column: str = "pressure_hpa"

    @classmethod
    def from_dict(cls, data: dict | None) -> "AltimeterConfig":
        data = dict(data or {})
        params = KalmanFilterParams(**_known(KalmanFilterParams, data.pop("filter", None) or {}))
        return cls(filter=params, **_known(cls, data))

    @classmethod
    def from_file(cls, path: str | Path) -> "AltimeterConfig":
        return cls.from_dict(load_config(path))
