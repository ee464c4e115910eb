"""Main entry point for the String Tuner CLI."""

import sys
import argparse
import queue
import time
from typing import List, Optional

from ..core.config import ConfigManager, TunerConfig
from ..logger import get_logger
from ..logging_config import setup_logging
from ..note_types import Frame, FrameResult
from ..tuner import TunerSession
from ..tunings import CHROMATIC, INSTRUMENTS, default_target_set, parse_tuning_spec

logger = get_logger(__name__)

BAR_WIDTH = 20


def format_result(result: FrameResult, elapsed: Optional[float] = None) -> str:
    """One status line for a frame that produced a pitch."""
    prefix = f"[{elapsed:7.2f}s] " if elapsed is not None else ""
    freq = f"{result.pitch.frequency:8.2f} Hz"
    if result.resolved is None:
        return f"{prefix}{freq}  (outside target window)"

    filled = int(round(result.progress * BAR_WIDTH))
    bar = "#" * filled + "-" * (BAR_WIDTH - filled)
    return (
        f"{prefix}{freq}  {result.resolved.target_id:<4} {result.cents:+7.1f} cents  "
        f"[{bar}] {result.direction.value.replace('_', ' ').upper()}"
    )


def build_config(args: argparse.Namespace) -> TunerConfig:
    manager = ConfigManager(args.config)
    return manager.get_tuner_config(
        buffer_size=args.buffer_size,
        tuned_tolerance_cents=args.tolerance,
        stable_duration_ms=args.stable_ms,
        silence_rms=args.silence_rms,
    )


def build_session(args: argparse.Namespace) -> TunerSession:
    config = build_config(args)
    targets = parse_tuning_spec(args.tuning) if args.tuning else default_target_set()
    session = TunerSession(config=config, targets=targets)
    if args.string:
        session.select_target(args.string)
    session.events.on_tuned_confirmed(
        lambda match: print(f"✅ {match.target_id} tuned ({match.cents:+.1f} cents)")
    )
    return session


def list_tunings(_args: argparse.Namespace) -> int:
    for key, instrument in INSTRUMENTS.items():
        print(f"{key}: {instrument['name']}")
        for name, notes in instrument["tunings"].items():
            print(f"    {name:<20} {' '.join(notes)}")
    print(f"{CHROMATIC}: every semitone C1-B6")
    return 0


def analyze_file(args: argparse.Namespace) -> int:
    from ..services.audio_providers import WavFileAudioProvider

    session = build_session(args)
    provider = WavFileAudioProvider(
        args.file, buffer_size=session.config.buffer_size, hop_size=args.hop_size, gain=args.gain
    )
    dt_ms = 1000.0 * provider.hop_size / provider.sample_rate

    confirmations = 0
    for index, samples in enumerate(provider.frames()):
        result = session.process(Frame(samples, provider.sample_rate), dt_ms)
        confirmations += int(result.confirmed)
        if result.pitch.has_pitch:
            print(format_result(result, elapsed=index * dt_ms / 1000.0))

    logger.info(f"Analyzed {args.file}: {confirmations} confirmation(s)")
    return 0


def listen(args: argparse.Namespace) -> int:
    from ..services.live_input import LiveAudioProvider

    session = build_session(args)
    frames: "queue.Queue" = queue.Queue(maxsize=8)

    def on_frame(samples, timestamp):
        try:
            frames.put_nowait((samples, timestamp))
        except queue.Full:
            logger.debug("Dropping frame, processing is behind")

    provider = LiveAudioProvider(
        buffer_size=session.config.buffer_size,
        device_id=args.device,
        sample_rate=args.sample_rate,
        hop_size=args.hop_size or 1024,
    )
    provider.start(on_frame)

    deadline = time.time() + args.duration if args.duration else None
    last_timestamp = None
    try:
        while deadline is None or time.time() < deadline:
            try:
                samples, timestamp = frames.get(timeout=0.5)
            except queue.Empty:
                continue
            dt_ms = 0.0 if last_timestamp is None else 1000.0 * (timestamp - last_timestamp)
            last_timestamp = timestamp

            result = session.process(Frame(samples, provider.sample_rate), dt_ms)
            if result.pitch.has_pitch:
                print(format_result(result), end="\r", flush=True)
    except KeyboardInterrupt:
        pass
    finally:
        provider.stop()
        print()
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="String Tuner - instrument tuning from audio")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("tunings", help="List the preset tunings")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--tuning",
        type=str,
        default=None,
        help="Preset as instrument[:name], or 'chromatic' (default: standard guitar)",
    )
    common.add_argument(
        "--string", type=str, default=None, help="Pin one target note, e.g. A2 (manual mode)"
    )
    common.add_argument("--config", type=str, default=None, help="Configuration directory")
    common.add_argument("--buffer-size", type=int, default=None, help="Samples per frame")
    common.add_argument("--hop-size", type=int, default=None, help="Samples between frames")
    common.add_argument(
        "--tolerance", type=float, default=None, help="Cents counted as in tune"
    )
    common.add_argument(
        "--stable-ms", type=float, default=None, help="Milliseconds in tune before confirming"
    )
    common.add_argument(
        "--silence-rms", type=float, default=None, help="RMS below which a frame is silent"
    )

    analyze_parser = subparsers.add_parser(
        "analyze", parents=[common], help="Run the tuner over a sound file"
    )
    analyze_parser.add_argument("file", help="Path to a WAV/FLAC/OGG file")
    analyze_parser.add_argument("--gain", type=float, default=1.0, help="Input gain")

    listen_parser = subparsers.add_parser(
        "listen", parents=[common], help="Tune live from an input device"
    )
    listen_parser.add_argument("--device", type=int, default=None, help="Audio input device ID")
    listen_parser.add_argument(
        "--sample-rate", type=int, default=44100, help="Audio sample rate in Hz"
    )
    listen_parser.add_argument(
        "--duration", type=float, default=None, help="Stop after this many seconds"
    )
    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, or None to use sys.argv

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)
    setup_logging("DEBUG" if parsed_args.debug else None)

    commands = {"tunings": list_tunings, "analyze": analyze_file, "listen": listen}
    if parsed_args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[parsed_args.command](parsed_args)
    except ValueError as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
