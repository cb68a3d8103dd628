"""Command-line entry point for media-transcriber.

Validates the input file, builds the AWS clients, runs the transcription
pipeline on an asyncio event loop and prints the transcript. Errors are
reported as a one-line message plus a hint on stderr with a non-zero exit.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys

from media_transcriber import __version__
from media_transcriber.clients import AwsClients, create_aws_clients
from media_transcriber.config import Settings
from media_transcriber.files import validate_media_file
from media_transcriber.observability.logger import setup_logging
from media_transcriber.observability.progress import NullRenderer, ProgressTracker
from media_transcriber.pipeline import TranscriptionResult, transcribe_file
from media_transcriber.storage.s3_client import S3Client
from media_transcriber.transcribe.aws_transcribe import TranscribeClient
from media_transcriber.utils.errors import TranscriberError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

RULE = "-" * 40


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="media-transcriber",
        description="Transcribe a video or audio file with Amazon Transcribe.",
    )
    parser.add_argument("media_file", help="Path to the video or audio file")
    parser.add_argument("bucket", help="S3 bucket used for temporary storage")
    parser.add_argument(
        "output_file", nargs="?", help="Optional file to save the transcript to"
    )
    parser.add_argument("--region", help="AWS region (default: AWS config chain)")
    parser.add_argument(
        "--language-code", help="Language of the media, e.g. en-US (default: en-US)"
    )
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        default="text",
        help="Log output format on stderr (default: text)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Do not draw the upload progress bar"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def _silent_progress(total_bytes: int, label: str) -> ProgressTracker:
    return ProgressTracker(total_bytes, label, renderer=NullRenderer())


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.region:
        overrides["region_name"] = args.region
    if args.language_code:
        overrides["language_code"] = args.language_code
    return dataclasses.replace(settings, **overrides) if overrides else settings


def display_error(error: TranscriberError, stream=None) -> None:
    """Print an error message and its actionable hint."""
    stream = stream or sys.stderr
    print(f"Error: {error}", file=stream)
    print(error.hint, file=stream)


def print_result(result: TranscriptionResult, stream=None) -> None:
    """Print the transcript, framed by rules when writing to a terminal."""
    stream = stream or sys.stdout
    framed = bool(getattr(stream, "isatty", None) and stream.isatty())
    if framed:
        print("\nTranscription Results:", file=stream)
        print(RULE, file=stream)
    print(result.transcript, file=stream)
    if framed:
        print(RULE, file=stream)
    if result.output_path:
        print(f"Transcript saved to: {result.output_path}", file=sys.stderr)


async def _run(
    args: argparse.Namespace, settings: Settings, clients: AwsClients
) -> TranscriptionResult:
    storage = S3Client(
        clients.s3,
        args.bucket,
        progress_factory=_silent_progress if args.no_progress else None,
    )
    transcriber = TranscribeClient(
        clients.transcribe,
        poll_config=settings.poll,
        language_code=settings.language_code,
    )
    try:
        return await transcribe_file(
            args.media_file,
            storage,
            transcriber,
            settings=settings,
            output_path=args.output_file,
        )
    finally:
        await storage.wait_for_background_tasks()


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return its exit status."""
    args = build_parser().parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_format=args.log_format == "json",
    )

    try:
        settings = _apply_overrides(Settings.from_env(), args)
        validate_media_file(args.media_file, settings.validation)
        clients = create_aws_clients(settings.region_name)
        result = asyncio.run(_run(args, settings, clients))
    except TranscriberError as exc:
        logger.debug("Run failed", exc_info=True)
        display_error(exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED

    print_result(result)
    if result.write_error is not None:
        display_error(result.write_error)
        return EXIT_FAILURE
    return EXIT_OK


def main() -> None:
    """Console script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
