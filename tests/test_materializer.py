from pathlib import Path

import pytest

from catalog import CatalogStore, FileRecord, Origin, TagSet
from discovery import ArchiveEntrySource, FileSource
from hashing import Hasher
from materialize import LibraryVerifier, MaterializeState, Materializer
from placement import PlacementPlanner
from utils import CollisionStormExceeded, WriteVerificationFailed

SAME_TAGS = TagSet(title="Same", artist="Band", album="Album")


def make_catalog(root: Path) -> CatalogStore:
    catalog = CatalogStore(root / "catalog.sqlite")
    catalog.initialize()
    return catalog


def make_file(root: Path, name: str, payload: bytes) -> FileSource:
    path = root / "incoming" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)
    return FileSource(path=path)


def register(catalog: CatalogStore, source: FileSource, tags: TagSet = SAME_TAGS) -> FileRecord:
    payload = source.path.read_bytes()
    record = catalog.insert(source.origin, Hasher().hash_bytes(payload), len(payload))
    return catalog.update_tags(record.id, tags)


def make_materializer(catalog: CatalogStore, library: Path, attempts: int = 1000) -> Materializer:
    return Materializer(catalog, PlacementPlanner(library), max_collision_attempts=attempts)


def test_materialize_writes_verifies_and_commits(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    source = make_file(tmp_path, "song.mp3", b"audio-1")
    record = register(catalog, source)

    outcome = make_materializer(catalog, library).materialize(record, source)

    expected = library / "Band" / "Album" / "Same.mp3"
    assert outcome.state == MaterializeState.VERIFIED
    assert outcome.destination == expected
    assert expected.read_bytes() == b"audio-1"
    assert catalog.get(record.id).destination_path == str(expected)
    assert not list(expected.parent.glob(".*.partial"))
    catalog.close()


def test_duplicate_content_is_not_copied(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    materializer = make_materializer(catalog, library)
    first_source = make_file(tmp_path, "song.mp3", b"same-bytes")
    first = register(catalog, first_source)
    materializer.materialize(first, first_source)

    member = ArchiveEntrySource(
        archive_path=tmp_path / "takeout-1.zip",
        entry_name="song2.mp3",
        content=b"same-bytes",
        declared_size=len(b"same-bytes"),
    )
    duplicate = catalog.insert(member.origin, first.fingerprint, first.size)
    duplicate = catalog.update_tags(duplicate.id, TagSet(title="Other"))

    outcome = materializer.materialize(duplicate, member)

    assert outcome.state == MaterializeState.DUPLICATE_SKIPPED
    assert outcome.duplicate_of.id == first.id
    assert catalog.get(duplicate.id).destination_path is None
    assert [path for path in library.rglob("*") if path.is_file()] == [library / "Band" / "Album" / "Same.mp3"]
    catalog.close()


def test_collisions_get_sequential_indices(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    materializer = make_materializer(catalog, library)

    destinations = []
    for index in range(4):
        source = make_file(tmp_path, f"song{index}.mp3", f"audio-{index}".encode())
        outcome = materializer.materialize(register(catalog, source), source)
        destinations.append(outcome.destination.name)

    assert destinations == ["Same.mp3", "Same-1.mp3", "Same-2.mp3", "Same-3.mp3"]
    catalog.close()


def test_collision_storm_leaves_record_unplaced(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    materializer = make_materializer(catalog, library, attempts=3)

    for index in range(3):
        source = make_file(tmp_path, f"song{index}.mp3", f"audio-{index}".encode())
        assert materializer.materialize(register(catalog, source), source).state == MaterializeState.VERIFIED

    source = make_file(tmp_path, "song3.mp3", b"audio-3")
    record = register(catalog, source)
    with pytest.raises(CollisionStormExceeded):
        materializer.materialize(record, source)

    assert catalog.get(record.id).destination_path is None
    assert len([path for path in library.rglob("*") if path.is_file()]) == 3
    catalog.close()


def test_hash_mismatch_is_never_committed(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    source = make_file(tmp_path, "song.mp3", b"audio")
    record = catalog.insert(source.origin, "0" * 64, 5)
    record = catalog.update_tags(record.id, SAME_TAGS)

    with pytest.raises(WriteVerificationFailed):
        make_materializer(catalog, library).materialize(record, source)

    assert catalog.get(record.id).destination_path is None
    assert not (library / "Band" / "Album" / "Same.mp3").exists()
    catalog.close()


def test_placed_record_is_not_rewritten(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    materializer = make_materializer(catalog, library)
    source = make_file(tmp_path, "song.mp3", b"audio")
    record = register(catalog, source)
    placed = materializer.materialize(record, source)

    again = materializer.materialize(record, source)

    assert again.state == MaterializeState.ALREADY_PLACED
    assert again.destination == placed.destination
    assert len([path for path in library.rglob("*") if path.is_file()]) == 1
    catalog.close()


def test_invalid_collision_bound_is_rejected(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)

    with pytest.raises(ValueError):
        make_materializer(catalog, tmp_path / "library", attempts=0)


def test_verifier_reports_missing_and_altered_files(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    materializer = make_materializer(catalog, library)
    placed = []
    for index in range(3):
        source = make_file(tmp_path, f"song{index}.mp3", f"audio-{index}".encode())
        placed.append(materializer.materialize(register(catalog, source), source).destination)
    placed[1].unlink()
    placed[2].write_bytes(b"tampered")

    stats = LibraryVerifier(catalog).run()

    assert stats.checked == 3
    assert stats.ok == 1
    assert stats.missing == [str(placed[1])]
    assert stats.mismatched == [str(placed[2])]
    assert not stats.clean
    catalog.close()


def test_untracked_library_file_is_not_overwritten(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    existing = library / "Band" / "Album" / "Same.mp3"
    existing.parent.mkdir(parents=True)
    existing.write_bytes(b"operator copy")
    source = make_file(tmp_path, "song.mp3", b"new")

    outcome = make_materializer(catalog, library).materialize(register(catalog, source), source)

    assert outcome.state == MaterializeState.VERIFIED
    assert outcome.destination == library / "Band" / "Album" / "Same-1.mp3"
    assert outcome.collision_index == 1
    assert existing.read_bytes() == b"operator copy"
    assert outcome.destination.read_bytes() == b"new"
    catalog.close()


def test_write_refuses_to_replace_existing_destination(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    catalog = make_catalog(tmp_path)
    library = tmp_path / "library"
    existing = library / "Band" / "Album" / "Same.mp3"
    existing.parent.mkdir(parents=True)
    existing.write_bytes(b"appeared late")
    source = make_file(tmp_path, "song.mp3", b"new")
    record = register(catalog, source)
    materializer = make_materializer(catalog, library)
    monkeypatch.setattr(materializer, "resolve_destination", lambda record: (existing, None))

    with pytest.raises(WriteVerificationFailed):
        materializer.materialize(record, source)

    assert existing.read_bytes() == b"appeared late"
    assert not list(existing.parent.glob(".*.partial"))
    assert catalog.get(record.id).destination_path is None
    catalog.close()
