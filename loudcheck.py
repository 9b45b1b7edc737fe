import sys
import argparse
import time

try:
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich.progress import Progress, BarColumn, TextColumn
    from rich import box
except ImportError:
    print("Error: The 'rich' library is required for the CLI but not installed.", file=sys.stderr)
    print("Please install it with: pip install loudcheck[cli]", file=sys.stderr)
    sys.exit(1)

from loudchecklib import __version__
from loudchecklib.assessment import (
    assess_original_loudness,
    assess_original_peak,
    assess_projected_loudness,
    assess_projected_peak,
    gain_direction,
    meter_fraction,
)
from loudchecklib.audio import DecodeFailure, format_duration
from loudchecklib.config import (
    ConfigError,
    default_config,
    load_preset,
    merge_configs,
    save_preset,
    validate_config,
)
from loudchecklib.models import Severity, TransportState
from loudchecklib.platforms import ORIGINAL_ID, profile_ids
from loudchecklib.reports import build_report, generate_report, save_json
from loudchecklib.session import LoudnessSession
from loudchecklib.transport import TransportError

console = Console()

SEVERITY_STYLES = {
    Severity.CLEAN: "green",
    Severity.INFO: "blue",
    Severity.ATTENTION: "yellow",
    Severity.PROBLEM: "red",
    None: "dim",
}

GAIN_STYLES = {"boost": "green", "cut": "red", "unchanged": "yellow"}


def build_parser():
    parser = argparse.ArgumentParser(
        description="LoudCheck - preview streaming platform loudness normalization",
    )
    parser.add_argument("--version", action="version",
                        version=f"loudcheck {__version__}")

    parser.add_argument("file", type=str,
                        help="Audio file to analyze (.wav, .flac, .ogg, .mp3, .aif)")

    # Analysis
    parser.add_argument("--formula", dest="loudness_formula", choices=["offset", "plain"],
                        default=None,
                        help="Loudness proxy formula: 'offset' adds -0.691 dB, 'plain' does not "
                             "(default: offset)")
    parser.add_argument("--policy", dest="normalization_policy",
                        choices=["peak_safe", "loudness_only"], default=None,
                        help="Normalization policy: 'peak_safe' simulates limiting at the "
                             "platform peak ceiling (default: peak_safe)")
    parser.add_argument("--preset", type=str, default=None,
                        help="JSON preset with configuration overrides")
    parser.add_argument("--save-preset", dest="save_preset", type=str, default=None,
                        help="Write the effective configuration to this JSON preset and continue")

    # Audition
    parser.add_argument("--play", type=str, default=None,
                        choices=[ORIGINAL_ID] + profile_ids(),
                        help="Audition the track at the gain of this platform")
    parser.add_argument("--start", type=float, default=0.0,
                        help="Audition start position (seconds)")
    parser.add_argument("--device", dest="output_device", default=None,
                        help="Output device index or name for --play")

    # Reporting
    parser.add_argument("--json", type=str, default=None,
                        help="Write a JSON report to this path")
    parser.add_argument("--report", type=str, default=None,
                        help="Write a text report to this path")
    parser.add_argument("--series", action="store_true",
                        help="Include the 100 ms loudness/peak series in the JSON report")
    return parser


def build_config(args) -> dict:
    config = default_config()
    if args.preset:
        config = merge_configs(config, load_preset(args.preset))
    device = args.output_device
    if isinstance(device, str) and device.isdigit():
        device = int(device)
    config = merge_configs(config, {
        "loudness_formula": args.loudness_formula,
        "normalization_policy": args.normalization_policy,
        "output_device": device,
    })
    validate_config(config)
    return config


# ---------------------------------------------------------------------------
# Rich console rendering (CLI-only, not in the library)
# ---------------------------------------------------------------------------

def _meter(value, lo, hi, width=30):
    filled = int(round(meter_fraction(value, lo, hi) * width))
    return "█" * filled + "░" * (width - filled)


def _db(value, unit="dB", signed=False):
    if value is None or value != value or value in (float("inf"), float("-inf")):
        return "N/A"
    return f"{value:+.1f} {unit}" if signed else f"{value:.1f} {unit}"


def print_track(session, config):
    track = session.track
    summary = session.analysis.summary
    console.print(Panel.fit(
        f"[bold]{track.filename}[/]\n"
        f"Duration: [cyan]{format_duration(track.duration)}[/] | "
        f"Sample Rate: [cyan]{track.samplerate} Hz[/] | Channels: [cyan]{track.channels}[/]\n"
        f"Formula: [cyan]{config['loudness_formula']}[/] | "
        f"Policy: [cyan]{config['normalization_policy']}[/]",
        title="Original Track",
    ))

    ls = SEVERITY_STYLES[assess_original_loudness(summary.loudness)]
    ps = SEVERITY_STYLES[assess_original_peak(summary.peak)]
    console.print(f"  Loudness (RMS-based) [{ls}]{_meter(summary.loudness, -40, 0)}[/] "
                  f"{_db(summary.loudness, 'LUFS')}")
    console.print(f"  Peak (sample peak)   [{ps}]{_meter(summary.peak, -20, 0)}[/] "
                  f"{_db(summary.peak, 'dBFS')}")
    console.print(f"  Dynamic range        {_db(summary.dynamic_range)}")
    console.print("")


def print_platforms(session):
    table = Table(box=box.ROUNDED, title="Streaming Platform Simulations")
    table.add_column("Platform", style="bold cyan")
    table.add_column("Target", justify="right", style="dim")
    table.add_column("Gain", justify="right")
    table.add_column("Loudness", justify="right")
    table.add_column("Peak", justify="right")
    table.add_column("Limited", justify="center")

    tips = []
    for profile in session.profiles:
        r = session.results[profile.id]
        ceiling = f", {profile.target_peak:.1f} dB" if profile.target_peak is not None else ""
        ls = SEVERITY_STYLES[assess_projected_loudness(r.projected_loudness, profile.target_loudness)]
        ps = SEVERITY_STYLES[assess_projected_peak(r.projected_peak, profile.target_peak)]
        gs = GAIN_STYLES[gain_direction(r.gain_db)]
        table.add_row(
            profile.name,
            f"{profile.target_loudness:.1f} LUFS{ceiling}",
            f"[{gs}]{_db(r.gain_db, signed=True)}[/]",
            f"[{ls}]{_db(r.projected_loudness, 'LUFS')}[/]",
            f"[{ps}]{_db(r.projected_peak, 'dBFS')}[/]",
            "[yellow]⚠ yes[/]" if r.limited else "[dim]no[/]",
        )
        if profile.guidance:
            tips.append(f"  [dim]* {profile.name}: {profile.guidance}[/]")

    console.print(table)
    if any(r.limited for r in session.results.values()):
        console.print("[yellow]⚠ Limited platforms will likely play this track "
                      "below their loudness target.[/]")
    if tips:
        console.print("")
        console.print("[bold]Tips[/]")
        for tip in tips:
            console.print(tip)


def audition(session, profile_id, start):
    gain = session.select_profile(profile_id)
    session.seek(start)
    label = "Original" if profile_id == ORIGINAL_ID else session.profile(profile_id).name
    console.print("")
    console.print(f"[bold]▶ Playing {label}[/] at [cyan]{gain:+.1f} dB[/] "
                  f"[dim](Ctrl+C to stop)[/]")

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.fields[clock]}"),
        console=console,
    ) as progress:
        task_id = progress.add_task(label, total=session.duration, clock="")

        def on_position(position, duration):
            progress.update(task_id, completed=position,
                            clock=f"{format_duration(position)} / {format_duration(duration)}")

        unsubscribe = session.subscribe("transport.position", on_position)
        try:
            session.play()
            while session.state is TransportState.PLAYING:
                time.sleep(0.05)
        except KeyboardInterrupt:
            console.print("[dim]Stopped.[/]")
        finally:
            unsubscribe()
            session.stop()


def main(argv=None):
    parser = build_parser()
    if argv is None and len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        return 1
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 2

    if args.save_preset:
        save_preset(config, args.save_preset, description=f"loudcheck {__version__}")
        console.print(f"[dim]Preset saved to: {args.save_preset}[/]")

    with LoudnessSession(config) as session:
        try:
            with console.status("[cyan]Analyzing audio…"):
                session.load(args.file)
        except DecodeFailure as e:
            console.print(f"[bold red]Error:[/] {e}")
            return 1

        print_track(session, config)
        print_platforms(session)

        report = None
        if args.json or args.report:
            report = build_report(session.track, session.analysis, session.results,
                                  config, profiles=session.profiles,
                                  include_series=args.series)
        if args.json:
            save_json(report, args.json)
            console.print(f"\n[dim]JSON saved to: {args.json}[/]")
        if args.report:
            generate_report(report, args.report)
            console.print(f"[dim]Report saved to: {args.report}[/]")

        if args.play:
            try:
                audition(session, args.play, args.start)
            except TransportError as e:
                console.print(f"[bold red]Playback error:[/] {e}")
                return 3

    console.print("")
    console.print("[dim]Figures are simplified (RMS-based loudness, sample peak) and "
                  "not standard-compliant measurements.[/]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
