"""Command-line entry point: sort a directory tree of images."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .core.config import DEFAULT_WORKERS, GlobalConfiguration
from .logging.rich_logger import QuietProgressReporter, RichProgressReporter, setup_logging


logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="image-sort",
        description=(
            "Copy images into a time-stamped tree organized by capture month "
            "and place, optionally by camera model."
        ),
    )
    parser.add_argument(
        "-s", "--source-dir",
        type=Path,
        required=True,
        help="Directory with the images to sort (searched recursively)",
    )
    parser.add_argument(
        "-d", "--dest-dir",
        type=Path,
        default=None,
        help="Where the sorted images directory is created (default: source dir)",
    )
    parser.add_argument(
        "-u", "--use-device",
        action="store_true",
        help="Add a camera model level below the place",
    )
    parser.add_argument(
        "-w", "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        help=f"Number of parallel workers (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--keep-not-images",
        action="store_true",
        help="Copy files that are not images under NotImages/ instead of skipping them",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def run_sort(args: argparse.Namespace, reporter) -> int:
    """Set up the run and sort every directory of the source tree."""
    from .engines.geocoder import ReverseGeocoderSearch
    from .engines.metadata import PillowMetadataExtractor
    from .services.classifier import ClassificationEngine
    from .services.directories import (
        DirectoryCache,
        create_sorted_images_dir,
        create_unsorted_images_dir,
        get_subdirectories_recursive,
    )
    from .services.duplicates import DuplicateResolver
    from .services.geocode_cache import GeocodeCache
    from .services.metrics import MetricsAggregator
    from .services.sorter import ImageSorter, SorterDependencies

    source = args.source_dir.expanduser().resolve()
    if not source.is_dir():
        reporter.error(f"Source directory does not exist: {source}")
        return 1
    if args.workers < 1:
        reporter.error("Workers must be at least 1")
        return 1

    dest = args.dest_dir.expanduser().resolve() if args.dest_dir else source

    # Listed before the sorted root is created so it is never walked
    directories = get_subdirectories_recursive(source)
    directories.append(source)

    try:
        sorted_root = create_sorted_images_dir(dest)
        create_unsorted_images_dir(sorted_root)
    except OSError as e:
        reporter.error(f"Cannot create the sorted images directory in {dest}: {e}")
        return 1

    config = GlobalConfiguration.for_sorted_root(
        source,
        sorted_root,
        use_device=args.use_device,
        workers=args.workers,
        copy_not_images=args.keep_not_images,
    )

    reporter.print_header("image-sort")
    reporter.print_config({
        "Source Directory": str(config.source_directory),
        "Sorted Images": str(config.sorted_images_directory),
        "Directories": len(directories),
        "Use Device": config.use_device,
        "Workers": config.workers,
        "Keep Not Images": config.copy_not_images,
    })

    metrics = MetricsAggregator()
    geocoder = GeocodeCache(ReverseGeocoderSearch(), performance=metrics.performance)
    deps = SorterDependencies(
        metadata_extractor=PillowMetadataExtractor(),
        classifier=ClassificationEngine(geocoder, use_device=config.use_device),
        directory_cache=DirectoryCache(performance=metrics.performance),
        duplicate_resolver=DuplicateResolver(metrics=metrics),
        metrics=metrics,
        progress=reporter,
    )

    reporter.info(f"Found {len(directories)} directories under {source}")
    sorter = ImageSorter(config=config, deps=deps)
    snapshot = sorter.run(directories)

    reporter.print_report(snapshot)
    reporter.print_performance(metrics.performance.snapshot())
    if snapshot.images_errored:
        reporter.warning(f"{snapshot.images_errored} images could not be sorted")
    reporter.success(f"Sorted images written to {config.sorted_images_directory}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    if args.quiet:
        reporter = QuietProgressReporter()
    else:
        reporter = RichProgressReporter(verbose=args.verbose)

    try:
        with reporter:
            return run_sort(args, reporter)
    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return 130
    except Exception as e:
        logger.debug("Fatal error", exc_info=True)
        reporter.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
