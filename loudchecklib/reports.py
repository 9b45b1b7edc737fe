from __future__ import annotations

import json
import math
import os
from datetime import datetime
from typing import Any

from ._version import __version__
from .assessment import (
    assess_original_loudness,
    assess_original_peak,
    assess_projected_loudness,
    assess_projected_peak,
    gain_direction,
)
from .audio import format_duration
from .models import AudioTrack, NormalizationResult, PlatformProfile, TrackAnalysis
from .platforms import PLATFORM_PROFILES


def _severity_value(severity) -> str | None:
    return severity.value if severity is not None else None


def _finite(value: float) -> float | None:
    """JSON has no infinities; report them as null."""
    return float(value) if math.isfinite(value) else None


def build_report(
    track: AudioTrack,
    analysis: TrackAnalysis,
    results: dict[str, NormalizationResult],
    config: dict[str, Any],
    *,
    profiles: tuple[PlatformProfile, ...] = PLATFORM_PROFILES,
    include_series: bool = False,
) -> dict[str, Any]:
    """Assemble a JSON-ready report of one analyzed track."""
    summary = analysis.summary
    report: dict[str, Any] = {
        "version": __version__,
        "generated": datetime.now().isoformat(timespec="seconds"),
        "track": {
            "filename": track.filename,
            "filepath": track.filepath,
            "duration_sec": track.duration,
            "samplerate": track.samplerate,
            "channels": track.channels,
        },
        "settings": {
            "loudness_formula": config.get("loudness_formula", "offset"),
            "normalization_policy": config.get("normalization_policy", "peak_safe"),
            "window_samples": analysis.window_samples,
        },
        "summary": {
            "loudness": _finite(summary.loudness),
            "peak_db": _finite(summary.peak),
            "dynamic_range": _finite(summary.dynamic_range),
            "loudness_rating": _severity_value(assess_original_loudness(summary.loudness)),
            "peak_rating": _severity_value(assess_original_peak(summary.peak)),
        },
        "platforms": [],
    }

    for profile in profiles:
        r = results.get(profile.id)
        if r is None:
            continue
        report["platforms"].append({
            "id": profile.id,
            "name": profile.name,
            "target_loudness": profile.target_loudness,
            "target_peak": profile.target_peak,
            "gain_db": _finite(r.gain_db),
            "gain_direction": gain_direction(r.gain_db),
            "projected_loudness": _finite(r.projected_loudness),
            "projected_peak": _finite(r.projected_peak),
            "limited": r.limited,
            "loudness_rating": _severity_value(
                assess_projected_loudness(r.projected_loudness, profile.target_loudness)),
            "peak_rating": _severity_value(
                assess_projected_peak(r.projected_peak, profile.target_peak)),
            "guidance": profile.guidance,
        })

    if include_series:
        report["series"] = {
            "loudness": [[p.time, p.value] for p in analysis.loudness_series],
            "peak": [[p.time, p.value] for p in analysis.peak_series],
        }
    return report


def save_json(report: dict[str, Any], output_path: str) -> None:
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False)


def _fmt(value: float | None, unit: str = "dB", signed: bool = False) -> str:
    if value is None:
        return "N/A"
    return f"{value:+.1f} {unit}" if signed else f"{value:.1f} {unit}"


def render_report_text(report: dict[str, Any]) -> str:
    """Fixed-width text rendering of :func:`build_report` output."""
    t = report["track"]
    s = report["summary"]
    settings = report["settings"]
    lines = [
        "=" * 80,
        "LoudCheck Report",
        "=" * 80,
        f"Generated: {report['generated']}",
        f"File: {t['filename']}",
        f"Duration: {format_duration(t['duration_sec'])} | "
        f"Sample Rate: {t['samplerate']} Hz | Channels: {t['channels']}",
        f"Loudness formula: {settings['loudness_formula']} | "
        f"Policy: {settings['normalization_policy']}",
        "",
        "-" * 80,
        "ORIGINAL TRACK",
        "-" * 80,
        f"Integrated loudness (RMS-based): {_fmt(s['loudness'], 'LUFS')}",
        f"Peak level (sample peak):        {_fmt(s['peak_db'], 'dBFS')}",
        f"Dynamic range (peak - loudness): {_fmt(s['dynamic_range'])}",
        "",
        "-" * 80,
        "STREAMING PLATFORM SIMULATIONS",
        "-" * 80,
        "",
        "{:<16} {:>10} {:>10} {:>12} {:>12} {:>8}".format(
            "PLATFORM", "TARGET", "GAIN", "LOUDNESS", "PEAK", "LIMITED"),
        "-" * 80,
    ]
    for p in report["platforms"]:
        lines.append("{:<16} {:>10} {:>10} {:>12} {:>12} {:>8}".format(
            p["name"][:16],
            f"{p['target_loudness']:.1f}",
            _fmt(p["gain_db"], "dB", signed=True),
            _fmt(p["projected_loudness"], "LUFS"),
            _fmt(p["projected_peak"], "dBFS"),
            "yes" if p["limited"] else "no",
        ))
    limited = [p["name"] for p in report["platforms"] if p["limited"]]
    if limited:
        lines.extend([
            "",
            "Likely limited to meet the peak target (effective loudness below "
            "the platform target): " + ", ".join(limited),
        ])
    lines.extend([
        "",
        "Loudness and peak figures are simplified (RMS-based and sample peak)",
        "and are not standard-compliant measurements.",
        "",
    ])
    return "\n".join(lines)


def generate_report(report: dict[str, Any], output_path: str) -> str:
    """Write the text report to *output_path* and return its text."""
    text = render_report_text(report)
    os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
    return text
