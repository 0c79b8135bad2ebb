"""chaptergen command-line interface with subcommands.

Usage:
    chaptergen-cli analyze <srt>
    chaptergen-cli generate <srt> [-n COUNT] [--provider auto|claude|gemini] [-o out.json] [--exact]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from chaptergen.config import settings
from chaptergen.errors import ChaptergenError, GenerationFailedError
from chaptergen.services.generation import TimestampGenerationService
from chaptergen.services.proposer import build_proposer
from chaptergen.services.timecode import to_readable


def _read_srt(path_arg: str) -> str:
    srt_path = Path(path_arg).resolve()
    if not srt_path.exists():
        print(f"Error: SRT file not found: {srt_path}", file=sys.stderr)
        sys.exit(1)
    try:
        return srt_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        print(f"Error: SRT file is not valid UTF-8: {srt_path}", file=sys.stderr)
        sys.exit(1)


# --- Analyze subcommand ---


def cmd_analyze(args: argparse.Namespace) -> None:
    """Print metadata, plan and chunk layout without calling a proposer."""
    service = TimestampGenerationService(settings=settings)

    try:
        prepared = service.prepare(_read_srt(args.input))
    except ChaptergenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    metadata = prepared.metadata
    plan = prepared.plan
    is_long = metadata.is_long_content

    print(f"Duration: {to_readable(metadata.duration_seconds, is_long)} ({metadata.duration_minutes:.1f} min)")
    print(f"  Entries: {metadata.total_entries}")
    print(f"  Words/min: {metadata.estimated_words_per_minute} ({metadata.content_density.value})")
    print(f"  Long pauses: {'yes' if metadata.has_long_pauses else 'no'}")
    print(f"  Length: {metadata.length_category.value}")

    print(f"\nPlan: {plan.target_moment_count} moments, strategy {plan.strategy_tier.value}")
    print(f"  Quality: {plan.quality_expectation.value}")
    print(f"  Complexity: {plan.complexity_score:.2f}")
    print(f"  Estimated processing: ~{plan.estimated_processing_seconds}s")

    print(f"\nChunks ({len(prepared.chunks)}, {len(prepared.break_points)} break points):")
    for chunk in prepared.chunks:
        reason = chunk.break_point_reason.value if chunk.break_point_reason else "-"
        print(
            f"  {chunk.id:>3}  {to_readable(chunk.start_seconds, is_long)}"
            f" - {to_readable(chunk.end_seconds, is_long)}"
            f"  {chunk.duration_minutes:5.2f} min  {chunk.word_count:>5} words"
            f"  conf {chunk.confidence:.2f}  break {reason}"
        )

    summary = service.summarize_chunks(prepared.chunks)
    print(f"\nQuality score: {summary.quality_score}")
    for hint in summary.processing_hints:
        print(f"  {hint}")

    if prepared.warnings:
        print("\nWarnings:")
        for warning in prepared.warnings:
            print(f"  - {warning}")


# --- Generate subcommand ---


async def cmd_generate(args: argparse.Namespace) -> None:
    """Run the full pipeline and print chapter lines."""
    srt_content = _read_srt(args.input)

    try:
        proposer = build_proposer(settings, args.provider)
    except ChaptergenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    service = TimestampGenerationService(proposer=proposer, settings=settings)

    print(f"Generating timestamps with {proposer.name}...", file=sys.stderr)
    try:
        result = await service.generate(
            srt_content,
            target_count=args.count,
            require_exact_count=args.exact,
        )
    except GenerationFailedError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        for chunk_id, reason in sorted(exc.failed_chunks.items()):
            print(f"  chunk {chunk_id}: {reason}", file=sys.stderr)
        print("The run can be retried.", file=sys.stderr)
        sys.exit(2)
    except ChaptergenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(result.to_chapter_text())

    if result.warnings:
        print(f"\n{len(result.warnings)} warning(s):", file=sys.stderr)
        for warning in result.warnings:
            print(f"  - {warning}", file=sys.stderr)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
        print(f"\nSaved: {output_path}", file=sys.stderr)


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="chaptergen-cli",
        description="chaptergen - chapter timestamps from SRT subtitles",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- analyze ---
    p_analyze = subparsers.add_parser("analyze", help="Show metadata, plan and chunks")
    p_analyze.add_argument("input", type=str, help="Input SRT file")

    # --- generate ---
    p_generate = subparsers.add_parser("generate", help="Generate chapter timestamps")
    p_generate.add_argument("input", type=str, help="Input SRT file")
    p_generate.add_argument("-n", "--count", type=int, help="Number of timestamps (default: planned)")
    p_generate.add_argument(
        "--provider",
        choices=["auto", "claude", "gemini"],
        default=settings.proposer,
        help=f"Moment proposer (default: {settings.proposer})",
    )
    p_generate.add_argument("-o", "--output", type=str, help="Write the full result as JSON")
    p_generate.add_argument("--exact", action="store_true", help="Fail if fewer timestamps than requested")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Dispatch
    if args.command == "analyze":
        cmd_analyze(args)
    elif args.command == "generate":
        asyncio.run(cmd_generate(args))


if __name__ == "__main__":
    main()
