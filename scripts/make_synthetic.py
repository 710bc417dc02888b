from __future__ import annotations
import argparse, sys
from pathlib import Path

# allow package imports when running from scripts/
sys.path.append(str(Path(__file__).resolve().parents[1]))

import pandas as pd

from pressure_altimeter.altimeter import AltimeterSetting
from pressure_altimeter.baselines.synthetic import make_trace


def main():
    ap = argparse.ArgumentParser(description="Write a synthetic climb/descent pressure trace to CSV")
    ap.add_argument("--out", required=True, help="Output CSV path")
    ap.add_argument("--rate_hz", type=float, default=20.0)
    ap.add_argument("--noise_std", type=float, default=0.2, help="Pressure noise (hPa)")
    ap.add_argument("--jitter", type=float, default=0.3, help="Relative spread of the sample interval")
    ap.add_argument("--setting", type=float, default=29.92, help="Sea level pressure (inHg)")
    ap.add_argument("--seed", type=int, default=42)
    args = ap.parse_args()

    setting = AltimeterSetting(args.setting)
    trace = make_trace(rate_hz=args.rate_hz, noise_std=args.noise_std, jitter=args.jitter,
                       reference_hpa=setting.hpa, seed=args.seed)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame({
        "time": trace.time,
        "pressure_hpa": trace.pressure_hpa,
        "true_pressure_hpa": trace.true_pressure_hpa,
        "true_altitude_ft": trace.true_altitude_ft,
    }).to_csv(out, index=False)
    print(f"Wrote {len(trace.time)} samples to {out}")


if __name__ == "__main__":
    main()
