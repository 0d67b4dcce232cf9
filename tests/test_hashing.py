import hashlib
from pathlib import Path

import pytest

from discovery import ArchiveEntrySource, FileSource
from hashing import Hasher, IdentityResolver
from utils import SourceUnavailable


def test_hash_file_streams_in_chunks(tmp_path: Path) -> None:
    payload = b"0123456789" * 100
    file_path = tmp_path / "song.mp3"
    file_path.write_bytes(payload)

    hasher = Hasher(chunk_bytes=7)

    assert hasher.hash_file(file_path) == hashlib.sha256(payload).hexdigest()
    assert hasher.hash_bytes(payload) == hasher.hash_file(file_path)


def test_identity_of_standalone_file(tmp_path: Path) -> None:
    file_path = tmp_path / "song.mp3"
    file_path.write_bytes(b"abc")

    fingerprint, size = IdentityResolver().fingerprint_and_size(FileSource(path=file_path))

    assert fingerprint == hashlib.sha256(b"abc").hexdigest()
    assert size == 3


def test_identity_of_archive_member_uses_declared_size(tmp_path: Path) -> None:
    source = ArchiveEntrySource(
        archive_path=tmp_path / "takeout-1.zip",
        entry_name="song.mp3",
        content=b"abc",
        declared_size=99,
    )

    fingerprint, size = IdentityResolver().fingerprint_and_size(source)

    assert fingerprint == hashlib.sha256(b"abc").hexdigest()
    assert size == 99


def test_missing_file_is_unavailable(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailable):
        IdentityResolver().fingerprint_and_size(FileSource(path=tmp_path / "gone.mp3"))
