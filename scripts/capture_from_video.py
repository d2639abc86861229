#!/usr/bin/env python3
"""
Capture From Video
==================

Standalone script that drives a capture session from a camera or a recorded
clip and writes the enhanced trace to disk.

This script:
    1. Opens the camera index or video file with OpenCV
    2. Samples frames until the trace has been stable long enough
       (or, with --manual, captures after --manual-after frames)
    3. Writes the enhanced JPEG
    4. Reports a session summary

Usage:
    python scripts/capture_from_video.py --video ecg_clip.mp4 --out trace.jpg
    python scripts/capture_from_video.py --camera 0 --profile relaxed
    python scripts/capture_from_video.py --video ecg_clip.mp4 --manual --manual-after 90
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from ecg_assist.capture.source import VideoCaptureSource
from ecg_assist.capture.session import SessionStatus, create_capture_session
from ecg_assist.config import settings


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def run_capture(
    device,
    out_path: Path,
    profile: str,
    manual: bool,
    manual_after: int,
    max_frames: int,
) -> int:
    """
    Run one capture session.

    Args:
        device: Camera index or video path
        out_path: Where to write the JPEG
        profile: Capture profile name
        manual: Disable auto-capture
        manual_after: Frames to sample before the manual shutter
        max_frames: Give up after this many frames

    Returns:
        Process exit code
    """
    logger.info("=" * 60)
    logger.info("ECG Capture")
    logger.info("=" * 60)
    logger.info(f"Source: {device!r}")
    logger.info(f"Profile: {profile}")
    logger.info(f"Mode: {'manual' if manual else 'auto'}")
    logger.info("=" * 60)

    source = VideoCaptureSource(device)
    session = create_capture_session(source, settings, profile=profile, manual_mode=manual)

    if not session.start():
        logger.error(f"Session did not start: {session.status.value}")
        return 2

    try:
        if manual:
            session.run(max_ticks=manual_after)
            session.capture()
        else:
            session.run(max_ticks=max_frames)
    finally:
        session.end()

    metrics = session.get_metrics()
    logger.info("=" * 60)
    logger.info("SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Status: {metrics['status']}")
    logger.info(f"Frames sampled: {metrics['ticks']}")
    logger.info(f"Captures: {metrics['captures']}, failures: {metrics['failures']}")

    if session.status is not SessionStatus.CAPTURED or session.captured_image is None:
        logger.error("No image captured")
        return 1

    image = session.captured_image
    out_path.write_bytes(image.data)
    logger.info(f"Wrote {image!r} to {out_path}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Capture an enhanced ECG trace from video")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--camera", type=int, default=None, help="Camera index")
    group.add_argument("--video", type=str, default=None, help="Video file path")
    parser.add_argument("--out", type=Path, default=Path("ecg_trace.jpg"), help="Output JPEG")
    parser.add_argument(
        "--profile",
        default=settings.capture.profile,
        choices=sorted(settings.capture.profiles),
        help="Capture profile",
    )
    parser.add_argument("--manual", action="store_true", help="Disable auto-capture")
    parser.add_argument(
        "--manual-after",
        type=int,
        default=60,
        help="Frames to sample before the manual shutter",
    )
    parser.add_argument("--max-frames", type=int, default=1800, help="Frame limit")
    args = parser.parse_args()

    device = args.video if args.video is not None else (args.camera or 0)

    return run_capture(
        device=device,
        out_path=args.out,
        profile=args.profile,
        manual=args.manual,
        manual_after=args.manual_after,
        max_frames=args.max_frames,
    )


if __name__ == "__main__":
    sys.exit(main())
