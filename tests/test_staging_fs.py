"""Unit tests for the staging filesystem collaborator."""

import io
import threading

import pytest

from chunkstore.exceptions import InvalidIdentifierError
from chunkstore.staging_fs import StagingFilesystem, iter_pieces, validate_identity, validate_name


class TestValidateName:
    """Test path component validation."""

    @pytest.mark.parametrize("name", ["abc", "abc-1", "file.mp4", ".hidden"])
    def test_accepts_single_component(self, name):
        assert validate_name(name) == name

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "../etc", "a\\b", "a\x00b"])
    def test_rejects_unsafe_names(self, name):
        with pytest.raises(InvalidIdentifierError):
            validate_name(name)

    def test_identity_cannot_use_reserved_prefix(self):
        with pytest.raises(InvalidIdentifierError):
            validate_identity(".abc-1")


class TestIterPieces:
    """Test byte source normalisation."""

    def test_bytes_split_into_pieces(self):
        assert list(iter_pieces(b"abcdefg", piece_size=3)) == [b"abc", b"def", b"g"]

    def test_file_like(self):
        assert b"".join(iter_pieces(io.BytesIO(b"x" * 10), piece_size=4)) == b"x" * 10

    def test_iterable_skips_empty_pieces(self):
        assert list(iter_pieces([b"ab", b"", b"c"])) == [b"ab", b"c"]


class TestStagingFilesystem:
    """Test filesystem operations below the upload root."""

    def test_ensure_directory_is_idempotent(self, staging_fs, upload_dir):
        staging_fs.ensure_directory("file1")
        staging_fs.ensure_directory("file1")

        assert (upload_dir / "file1").is_dir()

    def test_concurrent_directory_creation(self, staging_fs, upload_dir):
        errors = []

        def create():
            try:
                staging_fs.ensure_directory("racing")
            except OSError as e:
                errors.append(e)

        threads = [threading.Thread(target=create) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert (upload_dir / "racing").is_dir()

    def test_list_entries_missing_directory(self, staging_fs):
        assert staging_fs.list_entries("absent") == []

    def test_list_entries_sorted(self, staging_fs):
        staging_fs.ensure_directory("d")
        staging_fs.write_stream(["d", "b"], b"1")
        staging_fs.write_stream(["d", "a"], b"2")

        assert staging_fs.list_entries("d") == ["a", "b"]

    def test_write_replaces_content(self, staging_fs, upload_dir):
        staging_fs.write_stream(["blob"], b"first version")
        staging_fs.write_stream(["blob"], b"second")

        assert (upload_dir / "blob").read_bytes() == b"second"

    def test_positional_writes_out_of_order(self, staging_fs, upload_dir):
        staging_fs.create_empty("target")
        staging_fs.write_stream(["target"], b"CCC", start_offset=6)
        staging_fs.write_stream(["target"], b"AAA", start_offset=0)
        staging_fs.write_stream(["target"], b"BBB", start_offset=3)

        assert (upload_dir / "target").read_bytes() == b"AAABBBCCC"

    def test_read_stream_pieces(self, upload_dir):
        fs = StagingFilesystem(upload_dir, piece_size=4)
        (upload_dir / "blob").write_bytes(b"0123456789")

        assert list(fs.open_read_stream("blob")) == [b"0123", b"4567", b"89"]

    def test_read_stream_missing_file(self, staging_fs):
        with pytest.raises(FileNotFoundError):
            list(staging_fs.open_read_stream("missing"))

    def test_move_replaces_destination(self, staging_fs, upload_dir):
        staging_fs.write_stream(["src"], b"new")
        staging_fs.write_stream(["dst"], b"old")

        staging_fs.move(["src"], ["dst"])

        assert not (upload_dir / "src").exists()
        assert (upload_dir / "dst").read_bytes() == b"new"

    def test_delete_file(self, staging_fs):
        staging_fs.write_stream(["blob"], b"x")

        assert staging_fs.delete_file("blob") is True
        assert staging_fs.delete_file("blob") is False

    def test_delete_directory_recursive(self, staging_fs, upload_dir):
        staging_fs.ensure_directory("d")
        staging_fs.write_stream(["d", "x-0"], b"x")

        assert staging_fs.delete_directory("d") is True
        assert not (upload_dir / "d").exists()
        assert staging_fs.delete_directory("d") is False

    def test_file_size(self, staging_fs):
        staging_fs.write_stream(["blob"], b"12345")

        assert staging_fs.file_size("blob") == 5
        assert staging_fs.file_size("missing") is None

    def test_path_traversal_rejected(self, staging_fs):
        with pytest.raises(InvalidIdentifierError):
            staging_fs.write_stream(["..", "escape"], b"x")
