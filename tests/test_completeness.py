"""Tests for upload status checks."""

import pytest

from chunkstore.completeness import CompletenessOracle, artifact_name, extract_ext, temp_artifact_name
from chunkstore.exceptions import InvalidIdentifierError


@pytest.fixture
def oracle(staging_fs, chunk_store):
    return CompletenessOracle(staging_fs, chunk_store)


class TestArtifactNaming:
    """Test final artifact names."""

    @pytest.mark.parametrize("file_name,expected", [
        ("movie.mp4", ".mp4"),
        ("archive.tar.gz", ".gz"),
        ("README", ""),
        ("C:\\Users\\me\\report.pdf", ".pdf"),
        ("some.dir/noext", ""),
        (".bashrc", ".bashrc"),
    ])
    def test_extract_ext(self, file_name, expected):
        assert extract_ext(file_name) == expected

    def test_artifact_name(self):
        assert artifact_name("abc123", "video.mkv") == "abc123.mkv"

    def test_artifact_name_rejects_unsafe_identity(self):
        with pytest.raises(InvalidIdentifierError):
            artifact_name("../abc", "video.mkv")

    def test_temp_artifact_is_hidden(self):
        assert temp_artifact_name("abc123.mkv").startswith(".")


class TestCheckStatus:
    """Test the verify decision."""

    @pytest.mark.asyncio
    async def test_fresh_upload(self, oracle):
        status = await oracle.check_status("filehash", "video.mp4")

        assert status.needs_upload is True
        assert status.existing_chunk_ids == []

    @pytest.mark.asyncio
    async def test_partial_upload_reports_stored_chunks(self, oracle, chunk_store):
        for i in range(3):
            await chunk_store.store_chunk("filehash", f"filehash-{i}", b"x")

        status = await oracle.check_status("filehash", "video.mp4")

        assert status.needs_upload is True
        assert sorted(status.existing_chunk_ids) == ["filehash-0", "filehash-1", "filehash-2"]

    @pytest.mark.asyncio
    async def test_existing_artifact_skips_upload(self, oracle, chunk_store, upload_dir):
        await chunk_store.store_chunk("filehash", "filehash-0", b"x")
        (upload_dir / "filehash.mp4").write_bytes(b"complete")

        status = await oracle.check_status("filehash", "video.mp4")

        assert status.needs_upload is False
        assert status.existing_chunk_ids == []

    @pytest.mark.asyncio
    async def test_artifact_with_other_extension_does_not_count(self, oracle, upload_dir):
        (upload_dir / "filehash.mov").write_bytes(b"complete")

        status = await oracle.check_status("filehash", "video.mp4")

        assert status.needs_upload is True

    @pytest.mark.asyncio
    async def test_check_has_no_side_effects(self, oracle, upload_dir):
        await oracle.check_status("filehash", "video.mp4")

        assert list(upload_dir.iterdir()) == []
