#!/usr/bin/env python3
"""
Generate one video from an image (or a video's first frame) and a prompt.

Uses the API key from GEMINI_API_KEY / API_KEY.

Usage:
    python3 scripts/generate_clip.py photo.jpg "The camera slowly pans right" -o out.mp4
    python3 scripts/generate_clip.py clip.mp4 "Waves crash on the shore" --long --aspect-ratio 9:16
"""

import argparse
import asyncio
import shutil
import sys
from pathlib import Path

from stillmotion.config import get_settings
from stillmotion.logging_config import setup_logging
from stillmotion.models.schemas import (
    AspectRatio,
    GenerationRequest,
    ProgressEvent,
    TargetLength,
)
from stillmotion.services.error_classifier import ClassifiedError
from stillmotion.services.input_normalizer import InputNormalizer, InputProcessingError
from stillmotion.services.pipeline import PipelineOrchestrator


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Turn a still image and a prompt into a video")
    parser.add_argument("source", type=Path, help="Image or video file")
    parser.add_argument("prompt", help="Motion description")
    parser.add_argument(
        "--aspect-ratio",
        choices=[ratio.value for ratio in AspectRatio],
        default=AspectRatio.WIDE.value,
    )
    parser.add_argument("--long", action="store_true", help="Extend the clip with a second stage")
    parser.add_argument("-o", "--output", type=Path, default=Path("stillmotion.mp4"))
    return parser.parse_args()


def print_progress(event: ProgressEvent) -> None:
    print(f"[{event.progress:3.0f}%] {event.message}")


async def main() -> int:
    args = parse_args()
    settings = get_settings()
    setup_logging(settings)

    try:
        image = await InputNormalizer(settings).normalize(args.source)
    except InputProcessingError as e:
        print(f"Could not process input: {e.message}", file=sys.stderr)
        return 2

    request = GenerationRequest(
        prompt=args.prompt,
        image=image,
        aspect_ratio=AspectRatio(args.aspect_ratio),
        target_length=TargetLength.LONG if args.long else TargetLength.SHORT,
    )

    orchestrator = PipelineOrchestrator(settings)
    try:
        handle = await orchestrator.generate(request, progress_callback=print_progress)
    except ClassifiedError as e:
        print(f"Generation failed ({e.kind.value}): {e.message}", file=sys.stderr)
        if e.requires_reauth:
            print("Set GEMINI_API_KEY to a valid key and try again.", file=sys.stderr)
        return 1

    with handle:
        shutil.copyfile(handle.path, args.output)

    print(f"Saved {args.output} ({handle.size_bytes / 1024 / 1024:.1f} MB)")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
