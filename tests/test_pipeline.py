import zipfile
from pathlib import Path

from catalog import CatalogStore
from config import AppConfig
from discovery import Scanner
from orchestrator.pipeline import IngestPipeline

TAGS_BY_CONTENT = {
    b"first-take": {"title": "First Take", "artist": "Jane Doe", "album": "Demos", "track": "3"},
    b"untagged": {},
}


def fake_extractor(target):
    payload = target.read_bytes() if isinstance(target, Path) else target
    return TAGS_BY_CONTENT.get(payload, {})


def make_pipeline(root: Path) -> tuple[CatalogStore, IngestPipeline, Scanner]:
    library = root / "library"
    catalog = CatalogStore(root / "catalog.sqlite")
    catalog.initialize()
    pipeline = IngestPipeline.create(catalog, library, extractor=fake_extractor)
    scanner = Scanner(AppConfig(root_dir=root, raw={}), excluded_paths=[library])
    return catalog, pipeline, scanner


def library_files(root: Path) -> list[Path]:
    return sorted(path for path in (root / "library").rglob("*") if path.is_file())


def build_inbox(root: Path) -> Path:
    inbox = root / "inbox"
    inbox.mkdir()
    (inbox / "song.mp3").write_bytes(b"first-take")
    (inbox / "mystery.ogg").write_bytes(b"untagged")
    with zipfile.ZipFile(inbox / "takeout-1.zip", "w") as archive:
        archive.writestr("song2.mp3", b"first-take")
    return inbox


def test_ingest_places_tagged_untagged_and_skips_duplicates(tmp_path: Path) -> None:
    inbox = build_inbox(tmp_path)
    catalog, pipeline, scanner = make_pipeline(tmp_path)

    stats = pipeline.ingest_paths(scanner, [inbox])

    library = tmp_path / "library"
    assert library_files(tmp_path) == [
        library / "Jane-Doe" / "Demos" / "03-First-Take.mp3",
        library / "unknown" / "unknown" / "unknown.ogg",
    ]
    assert stats.processed == 3
    assert stats.registered == 3
    assert stats.placed == 2
    assert stats.duplicates == 1
    assert stats.failed == 0

    duplicate = next(result for result in stats.results if result.state == "duplicate_skipped")
    assert duplicate.origin == f"{inbox / 'takeout-1.zip'}!song2.mp3"
    assert duplicate.duplicate_of == str(inbox / "song.mp3")

    summary = catalog.summary()
    assert summary.records == 3
    assert summary.placed == 2
    assert summary.duplicates_unplaced == 1
    catalog.close()


def test_reingest_is_idempotent(tmp_path: Path) -> None:
    inbox = build_inbox(tmp_path)
    catalog, pipeline, scanner = make_pipeline(tmp_path)
    pipeline.ingest_paths(scanner, [inbox])
    before = library_files(tmp_path)

    stats = pipeline.ingest_paths(scanner, [inbox])

    assert library_files(tmp_path) == before
    assert stats.registered == 0
    assert stats.placed == 0
    assert stats.already_placed == 2
    assert stats.duplicates == 1
    assert catalog.count_records() == 3
    catalog.close()


def test_failures_do_not_stop_the_run(tmp_path: Path) -> None:
    inbox = build_inbox(tmp_path)
    (inbox / "takeout-2.zip").write_bytes(b"truncated download")
    catalog, pipeline, scanner = make_pipeline(tmp_path)

    stats = pipeline.ingest_paths(scanner, [inbox, tmp_path / "missing"])

    assert stats.failed == 2
    assert stats.placed == 2
    failed = [result for result in stats.results if result.state == "failed"]
    assert {result.origin for result in failed} == {str(inbox / "takeout-2.zip"), str(tmp_path / "missing")}
    assert all(result.error for result in failed)
    catalog.close()


def test_collision_storm_is_counted_as_failure(tmp_path: Path) -> None:
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    for index in range(3):
        (inbox / f"take{index}.mp3").write_bytes(f"take-{index}".encode())
    library = tmp_path / "library"
    catalog = CatalogStore(tmp_path / "catalog.sqlite")
    catalog.initialize()
    pipeline = IngestPipeline.create(
        catalog, library, extractor=lambda target: {"title": "Take"}, max_collision_attempts=2
    )
    scanner = Scanner(AppConfig(root_dir=tmp_path, raw={}), excluded_paths=[library])

    stats = pipeline.ingest_paths(scanner, [inbox])

    assert stats.placed == 2
    assert stats.failed == 1
    assert [path.name for path in library_files(tmp_path)] == ["Take-1.mp3", "Take.mp3"]
    assert catalog.summary().placed == 2
    catalog.close()


def test_relative_and_absolute_inputs_share_origins(tmp_path: Path, monkeypatch) -> None:
    build_inbox(tmp_path)
    catalog, pipeline, scanner = make_pipeline(tmp_path)
    monkeypatch.chdir(tmp_path)

    first = pipeline.ingest_paths(scanner, [Path("inbox")])
    second = pipeline.ingest_paths(scanner, [tmp_path / "inbox"])

    assert first.registered == 3
    assert second.registered == 0
    assert second.already_placed == 2
    assert second.duplicates == 1
    assert catalog.count_records() == 3
    catalog.close()


def test_relative_input_still_skips_library(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "song.mp3").write_bytes(b"first-take")
    catalog, pipeline, scanner = make_pipeline(tmp_path)
    monkeypatch.chdir(tmp_path)
    pipeline.ingest_paths(scanner, [Path(".")])

    stats = pipeline.ingest_paths(scanner, [Path(".")])

    assert stats.processed == 1
    assert stats.already_placed == 1
    assert catalog.count_records() == 1
    catalog.close()
