"""Replay recorded or synthetic pressure traces through the Kalman filter.

Usage example:
    python -m pressure_altimeter.baselines.replay --synthetic --plot out/replay.png
    python -m pressure_altimeter.baselines.replay --csv flight.csv --setting 30.12 --out out/flight_filtered.csv
"""

from __future__ import annotations
import argparse
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from ..altimeter import STANDARD_PRESSURE_HPA, AltimeterSetting
from ..altitude import pressure_to_feet
from ..config import AltimeterConfig
from ..kalman_filter import KalmanFilter, KalmanFilterParams
from .synthetic import make_trace


def run_filter(times: np.ndarray,
               pressures: np.ndarray,
               params: Optional[KalmanFilterParams] = None,
               reference_hpa: float = STANDARD_PRESSURE_HPA,
               progress: bool = False) -> pd.DataFrame:
    """Filter a pressure trace sample by sample.

    The filter is reset on the first reading, as a host does when tracking
    starts. Times must be non-decreasing.
    """
    times = np.asarray(times, dtype=np.float64)
    pressures = np.asarray(pressures, dtype=np.float64)
    if times.shape != pressures.shape or times.ndim != 1:
        raise ValueError("times and pressures must be 1-D arrays of equal length")
    if len(times) == 0:
        raise ValueError("empty trace")

    kf = KalmanFilter(params)
    kf.reset(pressures[0])
    filtered = np.empty_like(pressures)
    rate = np.empty_like(pressures)
    filtered[0], rate[0] = kf.position, kf.velocity

    steps = range(1, len(times))
    for i in tqdm(steps, desc="Filtering", disable=not progress):
        kf.update(pressures[i], dt=times[i] - times[i - 1])
        filtered[i], rate[i] = kf.position, kf.velocity

    return pd.DataFrame({
        "time": times,
        "raw_hpa": pressures,
        "filtered_hpa": filtered,
        "rate_hpa_per_s": rate,
        "raw_altitude_ft": pressure_to_feet(reference_hpa, pressures),
        "altitude_ft": pressure_to_feet(reference_hpa, filtered),
    })


def evaluate(frame: pd.DataFrame, true_altitude_ft: np.ndarray) -> Dict[str, float]:
    """RMSE and worst-case altitude error (ft) of raw and filtered readings."""
    truth = np.asarray(true_altitude_ft, dtype=np.float64)
    raw_err = frame["raw_altitude_ft"].to_numpy() - truth
    filt_err = frame["altitude_ft"].to_numpy() - truth
    return {
        "raw_rmse_ft": float(np.sqrt(np.mean(raw_err**2))),
        "raw_max_ft": float(np.max(np.abs(raw_err))),
        "filtered_rmse_ft": float(np.sqrt(np.mean(filt_err**2))),
        "filtered_max_ft": float(np.max(np.abs(filt_err))),
    }


def load_trace(path: str | Path, time_column: str = "time", pressure_column: str = "pressure_hpa") -> pd.DataFrame:
    df = pd.read_csv(path)
    missing = [c for c in (time_column, pressure_column) if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {missing}, found {list(df.columns)}")
    df = df[[time_column, pressure_column]].dropna()
    return df.sort_values(time_column, kind="stable").reset_index(drop=True)


def plot_replay(frame: pd.DataFrame, out_path: Path, true_altitude_ft: Optional[np.ndarray] = None) -> None:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, (ax_p, ax_a) = plt.subplots(2, 1, figsize=(10, 7), sharex=True)
    ax_p.plot(frame["time"], frame["raw_hpa"], color="#1f77b4", alpha=0.4, linewidth=0.8, label="Raw")
    ax_p.plot(frame["time"], frame["filtered_hpa"], color="#d62728", linewidth=1.5, label="Kalman")
    ax_p.set_ylabel("Pressure (hPa)")
    ax_p.invert_yaxis()
    ax_p.legend(loc="best")
    ax_p.grid(True, alpha=0.3)

    ax_a.plot(frame["time"], frame["raw_altitude_ft"], color="#1f77b4", alpha=0.4, linewidth=0.8, label="Raw")
    ax_a.plot(frame["time"], frame["altitude_ft"], color="#d62728", linewidth=1.5, label="Kalman")
    if true_altitude_ft is not None:
        ax_a.plot(frame["time"], true_altitude_ft, color="#2ca02c", linewidth=1.5, linestyle="--", label="True")
    ax_a.set_xlabel("Time (s)")
    ax_a.set_ylabel("Altitude (ft)")
    ax_a.legend(loc="best")
    ax_a.grid(True, alpha=0.3)

    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    print(f"Plot saved to: {out_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay a pressure trace through the Kalman filter.")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--csv", type=str, help="CSV trace with time and pressure columns.")
    src.add_argument("--synthetic", action="store_true", help="Generate a synthetic climb/descent trace.")
    parser.add_argument("--config", type=str, default=None, help="YAML/JSON config file.")
    parser.add_argument("--setting", type=float, default=None, help="Altimeter setting in inHg.")
    parser.add_argument("--seed", type=int, default=42, help="Seed for the synthetic trace.")
    parser.add_argument("--noise_std", type=float, default=0.2, help="Synthetic pressure noise (hPa).")
    parser.add_argument("--out", type=str, default=None, help="Write the filtered trace to this CSV.")
    parser.add_argument("--plot", type=str, default=None, help="Write a PNG plot to this path.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    cfg = AltimeterConfig.from_file(args.config) if args.config else AltimeterConfig()
    setting = AltimeterSetting(args.setting if args.setting is not None else cfg.setting_inhg)
    print(f"Altimeter setting: {setting.inhg:.2f} inHg ({setting.hpa:.2f} hPa)")
    print(f"Filter params: {cfg.filter}")

    truth = None
    if args.synthetic:
        trace = make_trace(noise_std=args.noise_std, reference_hpa=setting.hpa, seed=args.seed)
        times, pressures, truth = trace.time, trace.pressure_hpa, trace.true_altitude_ft
    else:
        df = load_trace(args.csv, cfg.time_column, cfg.pressure_column)
        times = df[cfg.time_column].to_numpy()
        pressures = df[cfg.pressure_column].to_numpy()
    print(f"Samples: {len(times)}")

    frame = run_filter(times, pressures, cfg.filter, reference_hpa=setting.hpa, progress=True)

    if truth is not None:
        for name, value in evaluate(frame, truth).items():
            print(f"  {name}: {value:.2f}")

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(out_path, index=False)
        print(f"Filtered trace saved to: {out_path}")

    if args.plot:
        plot_replay(frame, Path(args.plot), truth)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
