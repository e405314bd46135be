"""Unit tests for cache directory management."""

from pathlib import Path

from extbuild.cache import Cache


class TestCache:
    """Test cases for Cache class."""

    def test_init_default_directory(self, monkeypatch):
        """Test initialization with default directory."""
        monkeypatch.delenv("EXTBUILD_CACHE_DIR", raising=False)
        cache = Cache()
        assert cache.project_dir == Path.cwd().resolve()
        assert cache.cache_root == cache.project_dir / ".extbuild"

    def test_init_custom_directory(self, tmp_path, monkeypatch):
        monkeypatch.delenv("EXTBUILD_CACHE_DIR", raising=False)
        cache = Cache(tmp_path)
        assert cache.project_dir == tmp_path.resolve()
        assert cache.cache_root == tmp_path.resolve() / ".extbuild"

    def test_init_with_env_override(self, tmp_path, monkeypatch):
        """Test cache directory override via environment variable."""
        cache_dir = tmp_path / "custom_cache"
        monkeypatch.setenv("EXTBUILD_CACHE_DIR", str(cache_dir))

        cache = Cache(tmp_path / "project")
        assert cache.cache_root == cache_dir.resolve()

    def test_paths(self, tmp_path, monkeypatch):
        monkeypatch.delenv("EXTBUILD_CACHE_DIR", raising=False)
        cache = Cache(tmp_path)
        root = tmp_path.resolve() / ".extbuild"
        assert cache.style_usage_file == root / "style-usage.json"
        assert cache.metafiles_dir == root / "metafiles"
        assert cache.watch_pid_file == root / "watch.pid"
        assert cache.log_file == root / "extbuild.log"

    def test_ensure_directories(self, tmp_path, monkeypatch):
        monkeypatch.delenv("EXTBUILD_CACHE_DIR", raising=False)
        cache = Cache(tmp_path)
        cache.ensure_directories()
        assert cache.cache_root.is_dir()
        assert cache.metafiles_dir.is_dir()

    def test_clean_build(self, tmp_path, monkeypatch):
        monkeypatch.delenv("EXTBUILD_CACHE_DIR", raising=False)
        cache = Cache(tmp_path)
        cache.ensure_directories()
        (cache.metafiles_dir / "esbuild_1.json").write_text("{}")
        cache.style_usage_file.write_text("{}")

        out_dir = tmp_path / "dist"
        (out_dir / "popup").mkdir(parents=True)
        (out_dir / "popup" / "index.js").write_text("")

        cache.clean_build(out_dir)

        assert not out_dir.exists()
        assert not cache.metafiles_dir.exists()
        # Usage record is reset separately
        assert cache.style_usage_file.exists()

    def test_clean_build_missing(self, tmp_path, monkeypatch):
        monkeypatch.delenv("EXTBUILD_CACHE_DIR", raising=False)
        cache = Cache(tmp_path)
        cache.clean_build(tmp_path / "dist")
