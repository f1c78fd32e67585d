"""Main image sorter - drives the worker pool over the source directories."""
from __future__ import annotations

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..core.config import GlobalConfiguration
from ..core.errors import ImageSortError, MetadataError, MetadataErrorKind
from ..core.models import (
    UNKNOWN_DEVICE,
    FileOutcome,
    ImageMetadata,
    MetricsSnapshot,
    ProcessingResult,
)
from ..core.protocols import MetadataExtractor, ProgressReporter
from .classifier import ClassificationEngine
from .directories import DirectoryCache, get_files_from_dir
from .duplicates import DuplicateResolver
from .metrics import MetricsAggregator, Timer


logger = logging.getLogger(__name__)


@dataclass
class SorterDependencies:
    """All services needed by the sorter.

    Built once per run and shared by every worker - no globals.
    """
    metadata_extractor: MetadataExtractor
    classifier: ClassificationEngine
    directory_cache: DirectoryCache
    duplicate_resolver: DuplicateResolver
    metrics: MetricsAggregator
    progress: ProgressReporter


class ImageSorter:
    """Sorts the images of a tree into the period/place[/device] layout.

    Directories are handled one after another; the files of a directory are
    spread over a fixed-size thread pool with no ordering between them. A
    failure is always confined to its own file.
    """

    def __init__(self, config: GlobalConfiguration, deps: SorterDependencies):
        """Initialize sorter with config and dependencies.

        Args:
            config: Run configuration.
            deps: All required services.
        """
        self._config = config
        self._deps = deps

    def run(self, directories: Iterable[Path]) -> MetricsSnapshot:
        """Sort every file of every directory.

        Returns:
            Metrics of the whole run.
        """
        self._deps.metrics.start_timer()

        for directory in directories:
            try:
                self.sort_directory(directory)
            except OSError as e:
                logger.error("Unexpected error %s when processing images in %s", e, directory)
                self._deps.progress.error(f"Could not process {directory}: {e}")
                continue
            logger.info("Images in %s processed", directory)

        return self._deps.metrics.snapshot()

    def sort_directory(self, directory: Path) -> list[ProcessingResult]:
        """Sort the files directly inside one directory.

        Raises:
            OSError: If the directory cannot be listed.
        """
        files = get_files_from_dir(directory)
        results: list[ProcessingResult] = []

        self._deps.progress.start_phase(self._phase_name(directory), len(files))
        try:
            with ThreadPoolExecutor(max_workers=self._config.workers) as executor:
                futures = {executor.submit(self.process_file, path): path for path in files}
                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        results.append(future.result())
                    except Exception as e:
                        logger.exception("Worker failed on %s", path)
                        results.append(self._errored(path, f"Unexpected error: {e}"))
                    self._deps.progress.advance_phase()
        finally:
            self._deps.progress.end_phase()

        self._deps.metrics.directory_processed()
        return results

    def process_file(self, path: Path) -> ProcessingResult:
        """Take one file to its terminal state and record it."""
        timer = Timer()
        try:
            metadata = self._deps.metadata_extractor.extract(path)
        except MetadataError as e:
            self._deps.metrics.performance.record_metadata_read(timer.elapsed())
            return self._handle_metadata_error(path, e)
        self._deps.metrics.performance.record_metadata_read(timer.elapsed())

        try:
            target = self._sort_image(path, metadata)
        except (OSError, ImageSortError) as e:
            return self._errored(path, str(e))

        logger.debug("Image %s processed", path)
        return ProcessingResult(path=path, outcome=FileOutcome.SORTED, target_path=target)

    def _sort_image(self, path: Path, metadata: ImageMetadata) -> Path:
        deps = self._deps
        key = deps.classifier.classify(metadata)

        directory = self._config.sorted_images_directory
        for segment in key.segments:
            directory = deps.directory_cache.ensure(directory, segment)

        target = deps.duplicate_resolver.place(path, directory / path.name)
        self._copy(path, target)

        # The report lists known models only, with or without the device level
        device = deps.classifier.device_segment(metadata)
        if device == UNKNOWN_DEVICE:
            device = None
        deps.metrics.record_sorted(key.period, key.place, device)
        return target

    def _handle_metadata_error(self, path: Path, error: MetadataError) -> ProcessingResult:
        match error.kind:
            case MetadataErrorKind.NOT_AN_IMAGE:
                logger.warning("%s is not an image. %s", path, error.detail)
                return self._skip_not_image(path)
            case MetadataErrorKind.NO_METADATA:
                logger.warning("No usable metadata in %s: %s", path, error.detail)
                return self._copy_unsorted(path)
            case MetadataErrorKind.DECODING:
                logger.error("Error %s when decoding metadata of %s", error.detail, path)
                return self._copy_unsorted(path)
            case MetadataErrorKind.IO:
                return self._errored(path, str(error))
        raise AssertionError(f"Unhandled metadata error kind: {error.kind}")

    def _copy_unsorted(self, path: Path) -> ProcessingResult:
        """Copy an image as-is under the unsorted bucket, keeping its relative path."""
        try:
            target = self._copy_to_bucket(path, self._config.unsorted_images_directory)
        except OSError as e:
            return self._errored(path, str(e))

        self._deps.metrics.record_unsorted()
        logger.debug("Image %s copied to unsorted bucket", path)
        return ProcessingResult(path=path, outcome=FileOutcome.UNSORTED, target_path=target)

    def _skip_not_image(self, path: Path) -> ProcessingResult:
        target = None
        if self._config.copy_not_images:
            try:
                target = self._copy_to_bucket(path, self._config.not_images_directory)
            except OSError as e:
                return self._errored(path, str(e))

        self._deps.metrics.record_skipped()
        return ProcessingResult(path=path, outcome=FileOutcome.SKIPPED, target_path=target)

    def _copy_to_bucket(self, path: Path, bucket: Path) -> Path:
        relative = self._config.relative_to_source(path)
        directory = self._deps.directory_cache.ensure(bucket, relative.parent)
        target = directory / relative.name
        self._copy(path, target)
        return target

    def _copy(self, source: Path, target: Path) -> None:
        timer = Timer()
        shutil.copy2(source, target)
        self._deps.metrics.performance.record_file_copy(timer.elapsed(), target.stat().st_size)

    def _errored(self, path: Path, reason: str) -> ProcessingResult:
        logger.error("Error %s when processing image %s", reason, path)
        self._deps.metrics.record_error(path, reason)
        return ProcessingResult(path=path, outcome=FileOutcome.ERRORED, error=reason)

    def _phase_name(self, directory: Path) -> str:
        try:
            relative = directory.relative_to(self._config.source_directory)
        except ValueError:
            return directory.name
        return str(relative) if relative.parts else directory.name
