"""Main module for the image SEO pipeline CLI."""

import sys
import json
import argparse
from pathlib import Path
from typing import List, Optional

from .core import (
    BatchResult,
    ImageSeoPipelineError,
    PipelineConfig,
    SourceImage,
    archive_processed_images,
    get_logger,
    set_log_level,
)
from .core.factories import ProcessingPipelineFactory
from .core.models import PROCESSOR_CHOICES
from .core.observability import MetricsCollector
from .core.uploads import load_local_images, validate_uploads

VERSION = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="image-seo-pipeline",
        description="Image SEO Pipeline - compress images and give them descriptive filenames",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compress a folder of product shots, one keyword for all of them
  image-seo-pipeline compress ./shots --keywords "blue shoes" --zip shoes.zip

  # One keyword per line, results written next to each other
  image-seo-pipeline compress a.jpg b.png --keywords-file keywords.txt \\
                              --output-dir ./optimized --processor multithread

  # Read from and publish to S3
  image-seo-pipeline compress --source-bucket raw --source-prefix uploads \\
                              --dest-bucket public --dest-prefix seo --keywords "red dress"

  # Show version
  image-seo-pipeline version
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    compress_parser: argparse.ArgumentParser = subparsers.add_parser(
        "compress", help="Compress and rename a batch of images"
    )
    compress_parser.add_argument(
        "paths", nargs="*", help="Image files or directories of images"
    )
    keyword_group = compress_parser.add_mutually_exclusive_group()
    keyword_group.add_argument(
        "--keywords", help="Keyword(s) for the filenames, one per line"
    )
    keyword_group.add_argument(
        "--keywords-file", type=Path, help="File with one keyword per line"
    )
    compress_parser.add_argument("--source-bucket", help="Source S3 bucket")
    compress_parser.add_argument("--source-prefix", default="", help="Source S3 prefix")
    compress_parser.add_argument("--dest-bucket", help="Destination S3 bucket")
    compress_parser.add_argument("--dest-prefix", default="", help="Destination S3 prefix")
    compress_parser.add_argument(
        "--output-dir", type=Path, help="Directory to write processed images to"
    )
    compress_parser.add_argument(
        "--zip", dest="zip_path", type=Path, help="Write all processed images into this ZIP file"
    )
    compress_parser.add_argument(
        "--manifest", type=Path, help="Write a JSON summary of the batch to this file"
    )
    compress_parser.add_argument(
        "--processor",
        type=str,
        default=None,
        choices=PROCESSOR_CHOICES,
        help="Processing strategy to use (default: serial)",
    )
    compress_parser.add_argument(
        "--max-workers", type=int, default=None, help="Worker pool bound for concurrent processors"
    )
    compress_parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    subparsers.add_parser("version", help="Show version information")

    return parser


def read_keywords(args: argparse.Namespace) -> str:
    """Keywords from ``--keywords`` or ``--keywords-file``, newline delimited."""
    if args.keywords_file is not None:
        return args.keywords_file.read_text(encoding="utf-8")
    return args.keywords or ""


def collect_images(
    args: argparse.Namespace, config: PipelineConfig
) -> List[SourceImage]:
    """Gather images from local paths and, optionally, an S3 prefix."""
    images: List[SourceImage] = []
    if args.paths:
        images.extend(load_local_images(args.paths, config.max_upload_bytes))
    if args.source_bucket:
        store = ProcessingPipelineFactory.create_asset_store()
        keys = store.list_images(args.source_bucket, args.source_prefix)
        images.extend(store.load_images(args.source_bucket, keys))
    validate_uploads(images, config.max_upload_bytes)
    return images


def write_outputs(args: argparse.Namespace, result: BatchResult) -> None:
    """Write processed images, the archive and the manifest where requested."""
    logger = get_logger("cli")

    if args.output_dir is not None:
        args.output_dir.mkdir(parents=True, exist_ok=True)
        for image in result.processed:
            (args.output_dir / image.optimized_name).write_bytes(image.encoded_data)
        logger.info(f"Wrote {result.total_processed} images to {args.output_dir}")

    archive_bytes: Optional[bytes] = None
    if args.zip_path is not None and result.processed:
        with open(args.zip_path, "wb") as zip_file:
            stream = archive_processed_images(result.processed)
            for chunk in stream:
                zip_file.write(chunk)
        logger.info(f"Wrote {len(stream.written)} images to {args.zip_path}")
        archive_bytes = args.zip_path.read_bytes()

    if args.dest_bucket:
        store = ProcessingPipelineFactory.create_asset_store()
        store.upload_processed(args.dest_bucket, result.processed, args.dest_prefix)
        if archive_bytes is not None:
            store.upload_archive(
                args.dest_bucket, archive_bytes, args.zip_path.name, args.dest_prefix
            )

    if args.manifest is not None:
        args.manifest.write_text(
            json.dumps(result.to_response(include_data=False), indent=2),
            encoding="utf-8",
        )


PIPELINE_STAGES = ("encode", "describe")


def log_stage_metrics(metrics: MetricsCollector) -> None:
    """Log per-stage timing summaries collected during a batch."""
    logger = get_logger("cli")
    for stage in PIPELINE_STAGES:
        summary = metrics.get_summary(stage)
        if not summary:
            continue
        logger.debug(
            f"Stage {stage}: {summary['total_operations']} runs, "
            f"{summary['failed_operations']} failed, "
            f"avg {summary['avg_duration'] * 1000:.1f}ms, "
            f"max {summary['max_duration'] * 1000:.1f}ms"
        )


def run_compress(args: argparse.Namespace) -> int:
    """
    Run the compress command.

    Returns:
        Process exit code: 0 when every image was processed, 1 otherwise
    """
    logger = get_logger("cli")
    config = PipelineConfig.from_env(
        processor=args.processor, max_workers=args.max_workers, debug=args.debug
    )
    if config.debug:
        set_log_level("DEBUG")

    keywords = read_keywords(args)
    if not keywords.strip():
        logger.error("Please provide at least one keyword")
        return 1

    images = collect_images(args, config)
    metrics = MetricsCollector()
    pipeline = ProcessingPipelineFactory.create_pipeline(config, metrics_collector=metrics)
    result = pipeline.process_batch(images, keywords)
    if config.debug:
        log_stage_metrics(metrics)

    write_outputs(args, result)

    for image in result.processed:
        logger.info(
            f"{image.original_name} -> {image.optimized_name} "
            f"({image.compression_ratio}% smaller)"
        )
    for failure in result.failures:
        logger.error(f"{failure.original_name} failed: {failure.error}")

    return 0 if result.success else 1


def main() -> None:
    """
    Entry point for the command-line interface (CLI) of the Image SEO Pipeline.

    Dispatches to the "compress" or "version" command and turns pipeline
    errors into a non-zero exit code.
    """
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args()

    if args.command == "compress":
        if not args.paths and not args.source_bucket:
            parser.error("compress needs image paths or --source-bucket")
        try:
            exit_code = run_compress(args)
        except KeyboardInterrupt:
            get_logger("cli").warning("Processing interrupted by user.")
            exit_code = 130
        except ImageSeoPipelineError as e:
            get_logger("cli").error(f"Processing failed: {e}")
            exit_code = 1
        except Exception as e:
            get_logger("cli").error(f"Processing failed: {e}", exc_info=True)
            exit_code = 1
        sys.exit(exit_code)

    elif args.command == "version":
        print("Image SEO Pipeline CLI")
        print(f"Version {VERSION}")
        print("Image compression with AI-described, SEO-friendly filenames")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
