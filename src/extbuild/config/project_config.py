"""
extbuild.ini configuration parser.

This module loads the optional extbuild.ini at the project root and resolves
the build environment (dev, stage or prod) into concrete compiler settings.
A project without extbuild.ini builds with the defaults below.

Example extbuild.ini:
    [extbuild]
    src_dir = src
    static_dir = public
    out_dir = dist
    default_env = dev
    ignore = build.ts, builder.ts

    [env]
    sourcemap = none

    [env:dev]
    sourcemap = external

Usage:
    config = ProjectConfig.load(Path("."))
    env = config.get_environment("prod", watch=False)
"""

import configparser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

CONFIG_FILENAME = "extbuild.ini"
VALID_ENVS = ("dev", "stage", "prod")
SOURCEMAP_MODES = ("none", "external")

DEFAULT_IGNORE = ["build.ts", "builder.ts", CONFIG_FILENAME]
DEFAULT_LOADERS = {
    ".png": "file",
    ".jpg": "file",
    ".svg": "file",
    ".woff": "file",
    ".woff2": "file",
}


class ProjectConfigError(Exception):
    """Exception raised for extbuild.ini or environment configuration errors."""

    pass


@dataclass
class BuildEnvironment:
    """Resolved settings for one build environment.

    Attributes:
        name: Environment name (dev, stage or prod)
        minify: Whether the bundler minifies output
        sourcemap: Source map mode ('none' or 'external')
        defines: Compile-time constant replacements
        watch: Whether this is a watch (hot reload) build
    """

    name: str
    minify: bool
    sourcemap: str
    defines: Dict[str, str] = field(default_factory=dict)
    watch: bool = False

    @property
    def release(self) -> bool:
        """Release builds are one-shot builds that get packaged."""
        return not self.watch


@dataclass
class ProjectConfig:
    """Project layout and tool settings."""

    project_dir: Path
    src_dir: Path
    static_dir: Path
    out_dir: Path
    bundler: str = "esbuild"
    style_compiler: str = "sass"
    default_env: str = "dev"
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    loaders: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LOADERS))
    watch_workers: int = 4
    env_sections: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @classmethod
    def default(cls, project_dir: Path) -> "ProjectConfig":
        """Configuration used when a project has no extbuild.ini."""
        project_dir = Path(project_dir).resolve()
        return cls(
            project_dir=project_dir,
            src_dir=project_dir / "src",
            static_dir=project_dir / "public",
            out_dir=project_dir / "dist",
        )

    @classmethod
    def load(cls, project_dir: Path) -> "ProjectConfig":
        """
        Load configuration for a project.

        Args:
            project_dir: Project root directory

        Returns:
            ProjectConfig (defaults if extbuild.ini is absent)

        Raises:
            ProjectConfigError: If extbuild.ini exists but is invalid
        """
        config = cls.default(project_dir)
        ini_path = config.project_dir / CONFIG_FILENAME
        if not ini_path.exists():
            return config

        parser = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )
        try:
            parser.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise ProjectConfigError(f"Failed to parse {ini_path}: {e}") from e

        try:
            config._apply_ini(parser)
        except (configparser.Error, ValueError) as e:
            raise ProjectConfigError(f"Invalid value in {ini_path}: {e}") from e

        return config

    def _apply_ini(self, parser: configparser.ConfigParser) -> None:
        """Overlay values from a parsed extbuild.ini."""
        if "extbuild" in parser:
            section = parser["extbuild"]
            self.src_dir = self.project_dir / section.get("src_dir", "src")
            self.static_dir = self.project_dir / section.get("static_dir", "public")
            self.out_dir = self.project_dir / section.get("out_dir", "dist")
            self.bundler = section.get("bundler", self.bundler)
            self.style_compiler = section.get("style_compiler", self.style_compiler)
            self.default_env = section.get("default_env", self.default_env)
            self.watch_workers = section.getint("watch_workers", self.watch_workers)

            ignore = section.get("ignore", "")
            if ignore.strip():
                self.ignore = _split_list(ignore)

            loaders = section.get("loaders", "")
            if loaders.strip():
                self.loaders = _parse_loaders(loaders)

        if self.watch_workers < 1:
            raise ValueError("watch_workers must be at least 1")

        for section_name in parser.sections():
            if section_name == "env" or section_name.startswith("env:"):
                self.env_sections[section_name] = {
                    key: (value or "").strip() for key, value in parser[section_name].items()
                }

        for section_name in self.env_sections:
            if section_name.startswith("env:"):
                env_name = section_name.split(":", 1)[1]
                if env_name not in VALID_ENVS:
                    raise ValueError(
                        f"unknown environment section [{section_name}] "
                        + f"(valid: {', '.join(VALID_ENVS)})"
                    )

    def get_environment(self, env_name: Optional[str] = None, watch: bool = False) -> BuildEnvironment:
        """
        Resolve a build environment.

        Release builds minify and omit source maps unless configured
        otherwise; watch builds never minify and default to external maps.

        Args:
            env_name: Environment name, or None for default_env
            watch: Whether the build runs under the watcher

        Returns:
            BuildEnvironment

        Raises:
            ProjectConfigError: If the environment name is not valid
        """
        name = env_name or self.default_env
        if name not in VALID_ENVS:
            raise ProjectConfigError(
                f"Unknown build environment '{name}'. "
                + f"Valid environments: {', '.join(VALID_ENVS)}"
            )

        # [env:<name>] overrides [env]
        settings = {**self.env_sections.get("env", {}), **self.env_sections.get(f"env:{name}", {})}

        sourcemap = settings.get("sourcemap", "external" if watch else "none")
        if sourcemap not in SOURCEMAP_MODES:
            raise ProjectConfigError(
                f"Invalid sourcemap mode '{sourcemap}' for environment '{name}'. "
                + f"Valid modes: {', '.join(SOURCEMAP_MODES)}"
            )

        minify = False
        if not watch:
            minify = _parse_bool(settings.get("minify", "true"), "minify")

        defines = {"process.env.NODE_ENV": f'"{name}"'}
        for item in _split_list(settings.get("define", "")):
            if "=" not in item:
                raise ProjectConfigError(f"Invalid define '{item}' (expected KEY=VALUE)")
            key, value = item.split("=", 1)
            defines[key.strip()] = value.strip()

        return BuildEnvironment(
            name=name,
            minify=minify,
            sourcemap=sourcemap,
            defines=defines,
            watch=watch,
        )


def _split_list(value: str) -> List[str]:
    """Split on newlines and commas, strip whitespace, filter empty."""
    items = []
    for line in value.split("\n"):
        for item in line.split(","):
            item = item.strip()
            if item:
                items.append(item)
    return items


def _parse_loaders(value: str) -> Dict[str, str]:
    """Parse '.png:file .svg:dataurl' into an extension -> loader table."""
    loaders = {}
    for item in value.replace(",", " ").split():
        if ":" not in item:
            raise ValueError(f"loader '{item}' is not in .ext:mode form")
        ext, mode = item.split(":", 1)
        if not ext.startswith("."):
            ext = "." + ext
        loaders[ext.lower()] = mode
    return loaders


def _parse_bool(value: str, key: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ProjectConfigError(f"Invalid boolean for {key}: '{value}'")
