#!/usr/bin/env python3
"""
Record-and-upload smoke run.

Replays an existing recording through the capture pipeline (acquire,
record, assemble, upload) against a running server, without camera
hardware.

Usage:
    python scripts/record_and_upload.py sample.webm --token <jwt>
    python scripts/record_and_upload.py sample.webm --token <jwt> --exercise 2 --speed 8
"""

import argparse
import asyncio
import logging
import sys

from mootcourt.capture import FileReplayHost, RecordingSession, VideoUploader
from mootcourt.capture.artifact import Artifact

logger = logging.getLogger(__name__)


def _report(artifact: Artifact, video_url: str | None) -> None:
    if video_url is None:
        print(f"  FAIL  {artifact.size} bytes not uploaded")
    else:
        print(f"  OK    {artifact.size} bytes -> {video_url}")


async def run(args: argparse.Namespace) -> int:
    host = FileReplayHost(args.path, speed=args.speed)
    duration = args.duration or host.estimated_duration() + 1.0

    async with VideoUploader(args.server, token=args.token) as uploader:
        session = RecordingSession(
            host,
            uploader,
            exercise_id=args.exercise,
            max_duration=args.max_duration,
        )
        if args.replace:
            outcome = await session.rerecord(args.replace, duration, on_complete=_report)
        else:
            outcome = await session.record(duration, on_complete=_report)

    if outcome.time_limit_reached:
        print("  NOTE  time limit reached, recording was stopped automatically")
    if outcome.error:
        print(f"  ERROR {outcome.error}")
        return 1
    return 0


def main() -> int:
    """Entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Replay a recording through the capture pipeline")
    parser.add_argument("path", help="Recording file to replay")
    parser.add_argument("--server", default="http://localhost:8000")
    parser.add_argument("--token", help="Bearer token from /api/auth/token")
    parser.add_argument("--exercise", type=int, help="Submit the upload for this exercise")
    parser.add_argument("--replace", help="Delete this previous video URL first")
    parser.add_argument("--duration", type=float, help="Seconds to record (default: whole file)")
    parser.add_argument("--max-duration", type=float, default=300.0)
    parser.add_argument("--speed", type=float, default=1.0, help="Replay speed-up factor")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
