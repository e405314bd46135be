"""Unit tests for extbuild.ini parsing and environment resolution."""

from pathlib import Path

import pytest

from extbuild.config import CONFIG_FILENAME, ProjectConfig, ProjectConfigError


def write_ini(project_dir: Path, content: str) -> Path:
    ini_path = project_dir / CONFIG_FILENAME
    ini_path.write_text(content)
    return ini_path


class TestProjectConfigLoad:
    """Test loading project configuration."""

    def test_defaults_without_ini(self, tmp_path):
        config = ProjectConfig.load(tmp_path)
        root = tmp_path.resolve()

        assert config.project_dir == root
        assert config.src_dir == root / "src"
        assert config.static_dir == root / "public"
        assert config.out_dir == root / "dist"
        assert config.bundler == "esbuild"
        assert config.style_compiler == "sass"
        assert config.default_env == "dev"
        assert "build.ts" in config.ignore
        assert "builder.ts" in config.ignore
        assert config.loaders[".png"] == "file"
        assert config.watch_workers == 4

    def test_layout_overrides(self, tmp_path):
        write_ini(tmp_path, """
[extbuild]
src_dir = source
static_dir = assets
out_dir = build/chrome
bundler = node_modules/.bin/esbuild
default_env = stage
watch_workers = 2
""")
        config = ProjectConfig.load(tmp_path)
        root = tmp_path.resolve()

        assert config.src_dir == root / "source"
        assert config.static_dir == root / "assets"
        assert config.out_dir == root / "build" / "chrome"
        assert config.bundler == "node_modules/.bin/esbuild"
        assert config.default_env == "stage"
        assert config.watch_workers == 2

    def test_ignore_list(self, tmp_path):
        write_ini(tmp_path, """
[extbuild]
ignore =
    build.ts
    *.tmp, *.swp
""")
        config = ProjectConfig.load(tmp_path)
        assert config.ignore == ["build.ts", "*.tmp", "*.swp"]

    def test_loaders(self, tmp_path):
        write_ini(tmp_path, """
[extbuild]
loaders = .svg:dataurl, ttf:file
""")
        config = ProjectConfig.load(tmp_path)
        assert config.loaders == {".svg": "dataurl", ".ttf": "file"}

    def test_invalid_loader(self, tmp_path):
        write_ini(tmp_path, "[extbuild]\nloaders = svg\n")
        with pytest.raises(ProjectConfigError, match="loader"):
            ProjectConfig.load(tmp_path)

    def test_invalid_watch_workers(self, tmp_path):
        write_ini(tmp_path, "[extbuild]\nwatch_workers = 0\n")
        with pytest.raises(ProjectConfigError, match="watch_workers"):
            ProjectConfig.load(tmp_path)

    def test_non_integer_watch_workers(self, tmp_path):
        write_ini(tmp_path, "[extbuild]\nwatch_workers = many\n")
        with pytest.raises(ProjectConfigError):
            ProjectConfig.load(tmp_path)

    def test_unknown_env_section(self, tmp_path):
        write_ini(tmp_path, "[env:qa]\nminify = false\n")
        with pytest.raises(ProjectConfigError, match="env:qa"):
            ProjectConfig.load(tmp_path)

    def test_parse_error(self, tmp_path):
        write_ini(tmp_path, "this is not ini\n")
        with pytest.raises(ProjectConfigError, match="Failed to parse"):
            ProjectConfig.load(tmp_path)

    def test_interpolation(self, tmp_path):
        write_ini(tmp_path, """
[extbuild]
out_dir = dist

[env]
define = APP_OUT="${extbuild:out_dir}"
""")
        config = ProjectConfig.load(tmp_path)
        env = config.get_environment("dev")
        assert env.defines["APP_OUT"] == '"dist"'


class TestGetEnvironment:
    """Test build environment resolution."""

    def test_release_defaults(self, tmp_path):
        config = ProjectConfig.load(tmp_path)
        env = config.get_environment("prod")

        assert env.name == "prod"
        assert env.minify is True
        assert env.sourcemap == "none"
        assert env.watch is False
        assert env.release is True
        assert env.defines == {"process.env.NODE_ENV": '"prod"'}

    def test_watch_defaults(self, tmp_path):
        config = ProjectConfig.load(tmp_path)
        env = config.get_environment("dev", watch=True)

        assert env.minify is False
        assert env.sourcemap == "external"
        assert env.release is False

    def test_default_env(self, tmp_path):
        write_ini(tmp_path, "[extbuild]\ndefault_env = stage\n")
        config = ProjectConfig.load(tmp_path)
        assert config.get_environment().name == "stage"

    @pytest.mark.parametrize("name", ["dev", "stage", "prod"])
    def test_valid_names(self, tmp_path, name):
        assert ProjectConfig.load(tmp_path).get_environment(name).name == name

    @pytest.mark.parametrize("name", ["production", "test", "DEV"])
    def test_invalid_name(self, tmp_path, name):
        config = ProjectConfig.load(tmp_path)
        with pytest.raises(ProjectConfigError, match="Unknown build environment"):
            config.get_environment(name)

    def test_invalid_default_env(self, tmp_path):
        write_ini(tmp_path, "[extbuild]\ndefault_env = qa\n")
        config = ProjectConfig.load(tmp_path)
        with pytest.raises(ProjectConfigError):
            config.get_environment()

    def test_env_section_inheritance(self, tmp_path):
        write_ini(tmp_path, """
[env]
minify = false
sourcemap = external

[env:prod]
minify = true
""")
        config = ProjectConfig.load(tmp_path)

        dev = config.get_environment("dev")
        assert dev.minify is False
        assert dev.sourcemap == "external"

        prod = config.get_environment("prod")
        assert prod.minify is True
        assert prod.sourcemap == "external"

    def test_watch_never_minifies(self, tmp_path):
        write_ini(tmp_path, "[env]\nminify = true\n")
        config = ProjectConfig.load(tmp_path)
        assert config.get_environment("prod", watch=True).minify is False

    def test_defines(self, tmp_path):
        write_ini(tmp_path, """
[env:stage]
define =
    API_URL="https://stage.example.com"
    DEBUG=true
""")
        config = ProjectConfig.load(tmp_path)
        env = config.get_environment("stage")
        assert env.defines == {
            "process.env.NODE_ENV": '"stage"',
            "API_URL": '"https://stage.example.com"',
            "DEBUG": "true",
        }

    def test_invalid_define(self, tmp_path):
        write_ini(tmp_path, "[env]\ndefine = DEBUG\n")
        config = ProjectConfig.load(tmp_path)
        with pytest.raises(ProjectConfigError, match="Invalid define"):
            config.get_environment("dev")

    def test_invalid_sourcemap(self, tmp_path):
        write_ini(tmp_path, "[env]\nsourcemap = inline\n")
        config = ProjectConfig.load(tmp_path)
        with pytest.raises(ProjectConfigError, match="sourcemap"):
            config.get_environment("dev")

    def test_invalid_boolean(self, tmp_path):
        write_ini(tmp_path, "[env]\nminify = sometimes\n")
        config = ProjectConfig.load(tmp_path)
        with pytest.raises(ProjectConfigError, match="minify"):
            config.get_environment("dev")
