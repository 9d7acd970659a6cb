#!/usr/bin/env python3
"""
Matplotlib front end for the gyro filter engine.

Subcommands render the result arrays produced by :mod:`gyrofilter.analysis`
and :mod:`gyrofilter.core`:

  * ``response``   magnitude/phase of a single filter stage,
  * ``decimation`` 4-pole Bessel decimation filter response and step response,
  * ``pipeline``   time series, spectra and per-stage levels of a full chain,
  * ``dyn-notch``  spectrum, detected peaks and the dynamic notch response.

Pass ``--out figure.png`` to save instead of opening a window.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import matplotlib as mpl
import numpy as np

from ..analysis.coefficients import FilterKind
from ..analysis.errors import FilterError
from ..analysis.response import ResponseCurve, decimation_response, frequency_response
from ..analysis.signals import SignalKind, step_signal, time_axis
from ..config import DEFAULT_CONFIG_PATH, GyroFilterConfig, load_config
from ..config.stages import decimation_stages
from ..core.pipeline import run_pipeline
from ..core.pipeline_wiring import dynamic_notches_for, input_signal, pipeline_response, simulate

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- # helpers
def _plot_response(ax, curve: ResponseCurve, title: str) -> None:
    ax.semilogx(curve.frequencies, curve.magnitudes, color="#667eea", lw=2, label="Magnitude")
    ax.set_xlabel("Frequency (Hz)")
    ax.set_ylabel("Magnitude (dB)")
    ax.set_title(title)
    ax_phase = ax.twinx()
    ax_phase.semilogx(curve.frequencies, curve.phases, color="#e74c3c", lw=1, label="Phase")
    ax_phase.set_ylabel("Phase (deg)")


def _plot_time(ax, t: np.ndarray, x_in: np.ndarray, x_out: np.ndarray, title: str) -> None:
    ax.plot(t, x_in, color="#95a5a6", lw=1, label="Input")
    ax.plot(t, x_out, color="#667eea", lw=2, label="Output")
    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Amplitude")
    ax.set_title(title)
    ax.legend(loc="upper left")


def _finish(fig, out: Optional[Path]) -> None:
    import matplotlib.pyplot as plt

    fig.tight_layout()
    if out is not None:
        fig.savefig(out)
        logger.info("Figure written to %s", out)
        plt.close(fig)
    else:
        plt.show()


# --------------------------------------------------------------------------- # commands
def cmd_response(args: argparse.Namespace, cfg: GyroFilterConfig) -> None:
    import matplotlib.pyplot as plt

    kind = FilterKind.parse(args.type)
    curve = frequency_response(kind, args.cutoff, cfg.sample_rate_hz, args.q, points=cfg.response_points)
    fig, ax = plt.subplots(figsize=(9, 4))
    _plot_response(ax, curve, f"{kind.value} @ {args.cutoff:g} Hz")
    _finish(fig, args.out)


def cmd_decimation(args: argparse.Namespace, cfg: GyroFilterConfig) -> None:
    import matplotlib.pyplot as plt

    fs = cfg.sample_rate_hz
    curve = decimation_response(args.cutoff, fs, points=cfg.response_points)
    step = step_signal(cfg.buffer_length, fs, cfg.step_time_s)
    out = run_pipeline(decimation_stages(args.cutoff), step, fs)

    fig, (ax_f, ax_t) = plt.subplots(2, 1, figsize=(9, 7))
    _plot_response(ax_f, curve, "Decimation Filter Frequency Response")
    _plot_time(ax_t, time_axis(step.size, fs), step, out, "Decimation Filter Step Response")
    _finish(fig, args.out)


def cmd_pipeline(args: argparse.Namespace, cfg: GyroFilterConfig) -> None:
    import matplotlib.pyplot as plt

    result = simulate(cfg)
    curve = pipeline_response(cfg.stages, cfg.sample_rate_hz, points=cfg.response_points)

    fig, axes = plt.subplots(2, 2, figsize=(12, 8))
    series = result.series
    _plot_time(axes[0, 0], series.time, series.input, series.output, "Pipeline Time Domain Response")
    _plot_response(axes[0, 1], curve, "Pipeline Frequency Response")
    ax = axes[1, 0]
    ax.plot(result.input_spectrum.frequencies, result.input_spectrum.magnitudes, color="#95a5a6", lw=1, label="Input")
    ax.plot(result.output_spectrum.frequencies, result.output_spectrum.magnitudes, color="#667eea", lw=2, label="Output")
    ax.set_xlabel("Frequency (Hz)")
    ax.set_ylabel("Magnitude (dB)")
    ax.set_title("Input vs Output Spectrum")
    ax.legend(loc="upper right")
    ax = axes[1, 1]
    labels = [name for name, _ in result.stage_levels]
    ax.bar(labels, [level for _, level in result.stage_levels], color="#667eea")
    ax.set_ylabel("Relative RMS level")
    ax.set_title("Filter Stage Contributions")
    ax.tick_params(axis="x", labelrotation=45)
    _finish(fig, args.out)


def cmd_dyn_notch(args: argparse.Namespace, cfg: GyroFilterConfig) -> None:
    import matplotlib.pyplot as plt

    samples = input_signal(cfg, rng=cfg.seed)
    result = dynamic_notches_for(cfg, samples)

    fig, (ax_s, ax_r) = plt.subplots(2, 1, figsize=(9, 7))
    ax_s.plot(result.spectrum.frequencies, result.spectrum.magnitudes, color="#667eea", lw=1, label="Spectrum")
    ax_s.plot(
        [p.frequency for p in result.peaks],
        [p.magnitude for p in result.peaks],
        "o",
        color="#e74c3c",
        label="Detected Peaks",
    )
    ax_s.set_xlabel("Frequency (Hz)")
    ax_s.set_ylabel("Magnitude (dB)")
    ax_s.set_title("Spectrum & Detected Peaks")
    ax_s.legend(loc="upper right")
    _plot_response(ax_r, result.response, "Dynamic Notch Frequency Response")
    _finish(fig, args.out)


# --------------------------------------------------------------------------- # CLI
def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Gyro filter response and pipeline plots")
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with GyroFilterConfig settings and the pipeline (default: packaged pipeline.yaml)",
    )
    parser.add_argument(
        "--sample-rate",
        type=float,
        help="Override sample_rate_hz without editing the YAML",
    )
    parser.add_argument(
        "--signal",
        choices=[kind.value for kind in SignalKind],
        help="Override the pipeline input signal",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the random input signals",
    )
    parser.add_argument(
        "--out",
        type=Path,
        help="Save the figure to this file instead of showing a window",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p_resp = sub.add_parser("response", help="Single filter stage response")
    p_resp.add_argument("--type", default=FilterKind.PT1.value, help="Filter kind (pt1, pt2, pt3, butterworth, ...)")
    p_resp.add_argument("--cutoff", type=float, default=100.0, help="Cutoff or notch center in Hz")
    p_resp.add_argument("--q", type=float, default=None, help="Q for lowpass/notch kinds")
    p_resp.set_defaults(func=cmd_response)

    p_dec = sub.add_parser("decimation", help="4-pole Bessel decimation filter")
    p_dec.add_argument("--cutoff", type=float, default=200.0, help="Decimation cutoff in Hz")
    p_dec.set_defaults(func=cmd_decimation)

    p_pipe = sub.add_parser("pipeline", help="Full filter chain simulation")
    p_pipe.set_defaults(func=cmd_pipeline)

    p_dyn = sub.add_parser("dyn-notch", help="Dynamic notch placement")
    p_dyn.set_defaults(func=cmd_dyn_notch)
    return parser


def _resolve_config(args: argparse.Namespace) -> GyroFilterConfig:
    cfg = load_config(args.config or DEFAULT_CONFIG_PATH)
    if args.sample_rate is not None:
        cfg.sample_rate_hz = float(args.sample_rate)
    if args.signal is not None:
        cfg.signal_kind = args.signal
    if args.seed is not None:
        cfg.seed = int(args.seed)
    return cfg.sanitized()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.out is not None:
        mpl.use("Agg")

    try:
        cfg = _resolve_config(args)
        args.func(args, cfg)
    except FilterError as exc:
        logger.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
