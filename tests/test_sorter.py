"""Tests for the image sorter."""
from pathlib import Path

import pytest

from image_sort.core.config import GlobalConfiguration
from image_sort.core.errors import MetadataErrorKind
from image_sort.core.models import FileOutcome, ImageMetadata, NULL_ISLAND, UNKNOWN_DATE
from image_sort.services.classifier import ClassificationEngine
from image_sort.services.directories import (
    DirectoryCache,
    create_sorted_images_dir,
    create_unsorted_images_dir,
    get_subdirectories_recursive,
)
from image_sort.services.duplicates import DuplicateResolver
from image_sort.services.geocode_cache import GeocodeCache
from image_sort.services.metrics import MetricsAggregator
from image_sort.services.sorter import ImageSorter, SorterDependencies

from .fixtures import (
    AREZZO,
    RecordingReporter,
    StubMetadataExtractor,
    StubPlaceSearch,
    write_file,
)


AREZZO_SHOT = ImageMetadata(period="2008:10", device="COOLPIXP6000", coordinates=AREZZO)


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def dest(tmp_path: Path) -> Path:
    path = tmp_path / "dest"
    path.mkdir()
    return path


def build_sorter(source: Path, dest: Path, table: dict, **options) -> ImageSorter:
    """Wire a sorter with stubbed metadata and place search."""
    sorted_root = create_sorted_images_dir(dest)
    create_unsorted_images_dir(sorted_root)
    config = GlobalConfiguration.for_sorted_root(source, sorted_root, **options)

    metrics = MetricsAggregator()
    search = StubPlaceSearch({AREZZO: "Arezzo"})
    deps = SorterDependencies(
        metadata_extractor=StubMetadataExtractor(table),
        classifier=ClassificationEngine(
            GeocodeCache(search, performance=metrics.performance),
            use_device=config.use_device,
        ),
        directory_cache=DirectoryCache(performance=metrics.performance),
        duplicate_resolver=DuplicateResolver(metrics=metrics),
        metrics=metrics,
        progress=RecordingReporter(),
    )
    return ImageSorter(config=config, deps=deps)


def all_directories(source: Path) -> list[Path]:
    return get_subdirectories_recursive(source) + [source]


def sorted_root_of(dest: Path) -> Path:
    (root,) = dest.glob("Images-*")
    return root


class TestEndToEnd:
    """Single-image layouts."""

    def test_period_and_place(self, source, dest):
        """Without devices the layout is period/place/file."""
        write_file(source / "DSCN0010.jpg", b"jpeg bytes")
        sorter = build_sorter(source, dest, {"DSCN0010.jpg": AREZZO_SHOT})

        snapshot = sorter.run(all_directories(source))

        root = sorted_root_of(dest)
        target = root / "2008 10" / "Arezzo" / "DSCN0010.jpg"
        assert target.read_bytes() == b"jpeg bytes"
        assert snapshot.images_sorted == 1
        assert snapshot.devices == frozenset({"COOLPIXP6000"})
        assert snapshot.oldest_period == "2008 10"

    def test_period_place_and_device(self, source, dest):
        """use_device adds the camera model level."""
        write_file(source / "DSCN0010.jpg")
        sorter = build_sorter(source, dest, {"DSCN0010.jpg": AREZZO_SHOT}, use_device=True)

        sorter.run(all_directories(source))

        root = sorted_root_of(dest)
        assert (root / "2008 10" / "Arezzo" / "COOLPIXP6000" / "DSCN0010.jpg").is_file()
        assert not (root / "2008 10" / "Arezzo" / "DSCN0010.jpg").exists()

    def test_source_untouched(self, source, dest):
        """Sorting copies; the original stays in place."""
        original = write_file(source / "DSCN0010.jpg", b"keep me")
        sorter = build_sorter(source, dest, {"DSCN0010.jpg": AREZZO_SHOT})

        sorter.run(all_directories(source))

        assert original.read_bytes() == b"keep me"

    def test_no_gps_goes_to_null_island(self, source, dest):
        write_file(source / "a.jpg")
        sorter = build_sorter(source, dest, {"a.jpg": ImageMetadata(period="2015:06")})

        sorter.run(all_directories(source))

        assert (sorted_root_of(dest) / "2015 06" / NULL_ISLAND / "a.jpg").is_file()

    def test_no_date_goes_to_unknown_date(self, source, dest):
        write_file(source / "a.jpg")
        sorter = build_sorter(source, dest, {"a.jpg": ImageMetadata(coordinates=AREZZO)})

        snapshot = sorter.run(all_directories(source))

        assert (sorted_root_of(dest) / UNKNOWN_DATE / "Arezzo" / "a.jpg").is_file()
        assert snapshot.oldest_period is None

    @pytest.mark.parametrize("use_device", [False, True])
    def test_reported_devices_independent_of_layout(self, source, dest, use_device):
        """Known models are reported, missing ones are not, with or without the device level."""
        write_file(source / "a.jpg")
        write_file(source / "b.jpg")
        table = {"a.jpg": AREZZO_SHOT, "b.jpg": ImageMetadata(period="2008:10", coordinates=AREZZO)}
        sorter = build_sorter(source, dest, table, use_device=use_device)

        snapshot = sorter.run(all_directories(source))

        assert snapshot.images_sorted == 2
        assert snapshot.devices == frozenset({"COOLPIXP6000"})


class TestFailureHandling:
    """Each metadata failure kind reaches its own terminal state."""

    @pytest.mark.parametrize("kind", [MetadataErrorKind.NO_METADATA, MetadataErrorKind.DECODING])
    def test_unsorted_keeps_relative_path(self, source, dest, kind):
        write_file(source / "trip" / "day1" / "scan.jpg", b"scan")
        sorter = build_sorter(source, dest, {"scan.jpg": kind})

        snapshot = sorter.run(all_directories(source))

        target = sorted_root_of(dest) / "Unsorted" / "trip" / "day1" / "scan.jpg"
        assert target.read_bytes() == b"scan"
        assert snapshot.images_unsorted == 1
        assert snapshot.images_errored == 0

    def test_io_error_counted(self, source, dest):
        path = write_file(source / "locked.jpg")
        sorter = build_sorter(source, dest, {"locked.jpg": MetadataErrorKind.IO})

        snapshot = sorter.run(all_directories(source))

        assert snapshot.images_errored == 1
        assert snapshot.errors[0][0] == path
        assert snapshot.images_processed == 0

    def test_not_image_skipped(self, source, dest):
        write_file(source / "notes.txt")
        sorter = build_sorter(source, dest, {})

        snapshot = sorter.run(all_directories(source))

        assert snapshot.not_images_skipped == 1
        assert snapshot.images_errored == 0
        assert not list((sorted_root_of(dest) / "Unsorted").iterdir())

    def test_not_image_copied_when_kept(self, source, dest):
        write_file(source / "docs" / "notes.txt", b"notes")
        sorter = build_sorter(source, dest, {}, copy_not_images=True)

        snapshot = sorter.run(all_directories(source))

        target = sorted_root_of(dest) / "NotImages" / "docs" / "notes.txt"
        assert target.read_bytes() == b"notes"
        assert snapshot.not_images_skipped == 1

    def test_placement_failure_is_local(self, source, dest):
        """A directory in the way fails that file only."""
        write_file(source / "a.jpg")
        write_file(source / "b.jpg")
        sorter = build_sorter(
            source, dest, {"a.jpg": AREZZO_SHOT, "b.jpg": AREZZO_SHOT},
        )
        (sorted_root_of(dest) / "2008 10" / "Arezzo" / "a.jpg").mkdir(parents=True)

        snapshot = sorter.run(all_directories(source))

        assert snapshot.images_errored == 1
        assert snapshot.images_sorted == 1
        assert snapshot.errors[0][0] == source / "a.jpg"


class TestDuplicates:
    """Same file name from different source directories."""

    def test_second_copy_renamed(self, source, dest):
        write_file(source / "one" / "IMG_0001.jpg", b"first")
        write_file(source / "two" / "IMG_0001.jpg", b"second")
        sorter = build_sorter(source, dest, {"IMG_0001.jpg": AREZZO_SHOT})

        snapshot = sorter.run(all_directories(source))

        place_dir = sorted_root_of(dest) / "2008 10" / "Arezzo"
        contents = sorted(p.read_bytes() for p in place_dir.iterdir())
        assert contents == [b"first", b"second"]
        assert len(list(place_dir.glob("IMG_0001_duplicate_*.jpg"))) == 1
        assert snapshot.duplicates_renamed == 1
        assert snapshot.images_sorted == 2


class TestConcurrency:
    """Outcome counts are exact for any pool size."""

    @pytest.mark.parametrize("workers", [1, 4, 8])
    def test_counters_sum_to_file_count(self, source, dest, workers):
        table = {}
        kinds = [
            AREZZO_SHOT,
            ImageMetadata(period="2011:02"),
            MetadataErrorKind.NO_METADATA,
            MetadataErrorKind.DECODING,
            MetadataErrorKind.IO,
            MetadataErrorKind.NOT_AN_IMAGE,
        ]
        total = 60
        for i in range(total):
            name = f"file_{i:03d}.jpg"
            write_file(source / f"dir{i % 3}" / name)
            table[name] = kinds[i % len(kinds)]
        sorter = build_sorter(source, dest, table, workers=workers)

        snapshot = sorter.run(all_directories(source))

        assert snapshot.files_seen == total
        assert snapshot.images_sorted == 20
        assert snapshot.images_unsorted == 20
        assert snapshot.images_errored == 10
        assert snapshot.not_images_skipped == 10
        assert snapshot.directories_processed == 4

    def test_progress_per_directory(self, source, dest):
        for i in range(3):
            write_file(source / "sub" / f"{i}.jpg")
        write_file(source / "top.jpg")
        sorter = build_sorter(source, dest, {}, workers=2)

        sorter.run(all_directories(source))

        reporter = sorter._deps.progress
        assert reporter.phases == [("sub", 3), ("source", 1)]
        assert reporter.advanced == 4
        assert reporter.ended == 2


class TestListingFailure:
    """A directory that cannot be listed does not stop the run."""

    def test_missing_directory_skipped(self, source, dest):
        write_file(source / "a.jpg")
        sorter = build_sorter(source, dest, {"a.jpg": AREZZO_SHOT})

        snapshot = sorter.run([source / "vanished", source])

        assert snapshot.images_sorted == 1
        assert snapshot.directories_processed == 1
        assert sorter._deps.progress.messages[0][0] == "error"


def test_process_file_result(source, dest):
    """process_file reports the target of a sorted file."""
    path = write_file(source / "a.jpg")
    sorter = build_sorter(source, dest, {"a.jpg": AREZZO_SHOT})

    result = sorter.process_file(path)

    assert result.outcome == FileOutcome.SORTED
    assert result.target_path == sorted_root_of(dest) / "2008 10" / "Arezzo" / "a.jpg"
