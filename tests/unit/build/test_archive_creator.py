"""Unit tests for release archive creation."""

import zipfile

import pytest

from extbuild.build.archive_creator import ArchiveCreator, ArchiveError


@pytest.fixture
def output_tree(tmp_path):
    out = tmp_path / "dist"
    (out / "popup").mkdir(parents=True)
    (out / "manifest.json").write_text("{}")
    (out / "popup" / "index.js").write_text("console.log(1);")
    (out / "popup" / "index.js.map").write_text("{}")
    return out


class TestArchiveCreator:
    """Test cases for ArchiveCreator."""

    def test_create_archive(self, output_tree, tmp_path):
        archive_path = tmp_path / "release" / "dist-prod.zip"

        result = ArchiveCreator(show_progress=False).create_archive(output_tree, archive_path)

        assert result == archive_path
        with zipfile.ZipFile(archive_path) as archive:
            assert sorted(archive.namelist()) == ["manifest.json", "popup/index.js"]
            assert archive.read("popup/index.js") == b"console.log(1);"
        assert not archive_path.with_suffix(".zip.tmp").exists()

    def test_overwrites_existing(self, output_tree, tmp_path):
        archive_path = tmp_path / "dist-dev.zip"
        archive_path.write_text("old")

        ArchiveCreator(show_progress=False).create_archive(output_tree, archive_path)

        assert zipfile.is_zipfile(archive_path)

    def test_missing_output(self, tmp_path):
        with pytest.raises(ArchiveError, match="Output directory not found"):
            ArchiveCreator().create_archive(tmp_path / "dist", tmp_path / "out.zip")

    def test_empty_output(self, tmp_path):
        (tmp_path / "dist").mkdir()
        with pytest.raises(ArchiveError, match="No files to package"):
            ArchiveCreator().create_archive(tmp_path / "dist", tmp_path / "out.zip")

    def test_progress_message(self, output_tree, tmp_path, capsys):
        ArchiveCreator(show_progress=True).create_archive(output_tree, tmp_path / "dist-stage.zip")
        assert "Created dist-stage.zip from 2 files" in capsys.readouterr().out
