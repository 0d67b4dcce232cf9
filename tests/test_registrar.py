from pathlib import Path

from catalog import CatalogStore, Origin
from discovery import FileSource
from hashing import IdentityResolver
from intake import IntakeRegistrar


class CountingResolver(IdentityResolver):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def fingerprint_and_size(self, source):
        self.calls += 1
        return super().fingerprint_and_size(source)


def make_catalog(root: Path) -> CatalogStore:
    catalog = CatalogStore(root / "catalog.sqlite")
    catalog.initialize()
    return catalog


def test_register_is_idempotent_per_origin(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    registrar = IntakeRegistrar(catalog)
    origin = Origin.standalone(tmp_path / "song.mp3")

    first = registrar.register(origin, 3, "abc")
    second = registrar.register(origin, 3, "abc")

    assert first.id == second.id
    assert catalog.count_records() == 1
    catalog.close()


def test_register_returns_existing_record_even_if_content_changed(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    registrar = IntakeRegistrar(catalog)
    origin = Origin.standalone(tmp_path / "song.mp3")

    first = registrar.register(origin, 3, "abc")
    second = registrar.register(origin, 4, "def")

    assert second == first
    assert second.fingerprint == "abc"
    catalog.close()


def test_register_source_hashes_only_new_origins(tmp_path: Path) -> None:
    file_path = tmp_path / "song.mp3"
    file_path.write_bytes(b"audio")
    catalog = make_catalog(tmp_path)
    resolver = CountingResolver()
    registrar = IntakeRegistrar(catalog, resolver)

    first = registrar.register_source(FileSource(path=file_path))
    second = registrar.register_source(FileSource(path=file_path))

    assert first.created is True
    assert second.created is False
    assert first.record.id == second.record.id
    assert resolver.calls == 1
    catalog.close()


def test_same_content_at_different_origins_gets_separate_records(tmp_path: Path) -> None:
    catalog = make_catalog(tmp_path)
    registrar = IntakeRegistrar(catalog)

    first = registrar.register(Origin.standalone(tmp_path / "a.mp3"), 3, "abc")
    second = registrar.register(Origin.archive_entry(tmp_path / "takeout-1.zip", "a.mp3"), 3, "abc")

    assert first.id != second.id
    catalog.close()
