"""
Entry point for running facecompare as a module.

Usage:
    python -m facecompare
    python -m facecompare --config /path/to/config.yaml shell
    python -m facecompare compare reference.jpg [other.jpg]
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from facecompare.config import Settings
from facecompare.session import CompareSession
from facecompare.shell import CompareShell


def load_settings(config: Path | None) -> Settings:
    """Settings from the given YAML file, or defaults (plus environment) when none is given."""
    if config is None:
        return Settings()
    return Settings.from_yaml(config)


def run_compare(session: CompareSession, reference: Path, other: Path | None) -> int:
    """
    One-shot comparison.

    Args:
        session: Session to drive
        reference: Reference image path
        other: Second image path; a webcam frame is captured when None

    Returns:
        Process exit code: 0 when a result was computed, 1 otherwise
    """
    if not session.load_models():
        print(f"Error: Could not load face recognition models: {session.model_error}", file=sys.stderr)
        return 1

    if not session.upload_reference(reference):
        print(session.message, file=sys.stderr)
        return 1

    if other is None:
        if not session.start_camera():
            print("Error: Could not access the webcam", file=sys.stderr)
            return 1
        try:
            ok = session.capture_frame()
        finally:
            session.camera.release()
    else:
        ok = session.set_captured(other)
    if not ok:
        print(session.message, file=sys.stderr)
        return 1

    result = session.compare()
    print(session.message)
    return 0 if result is not None else 1


def run_shell(session: CompareSession) -> int:
    session.start_in_background()
    try:
        CompareShell(session).cmdloop()
    except KeyboardInterrupt:
        print()
    finally:
        if session.camera is not None:
            session.camera.release()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Compare a reference photo with a webcam capture using face descriptors"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured logging level",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("shell", help="Interactive session with the webcam (default)")
    compare = sub.add_parser("compare", help="Compare a reference image with another image or a webcam frame")
    compare.add_argument("reference", type=Path, help="Reference image")
    compare.add_argument(
        "other",
        type=Path,
        nargs="?",
        default=None,
        help="Image to compare against (default: capture a webcam frame)",
    )
    args = parser.parse_args(argv)

    # Load and validate configuration
    try:
        settings = load_settings(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level or settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)
    logger.info(f"Using face recognition backend: {settings.recognition.backend}")

    session = CompareSession.from_settings(settings)

    if args.command == "compare":
        return run_compare(session, args.reference, args.other)
    return run_shell(session)


if __name__ == "__main__":
    sys.exit(main())
