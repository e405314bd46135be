"""Configuration parsing for extbuild."""

from .project_config import (
    CONFIG_FILENAME,
    VALID_ENVS,
    BuildEnvironment,
    ProjectConfig,
    ProjectConfigError,
)

__all__ = [
    "CONFIG_FILENAME",
    "VALID_ENVS",
    "BuildEnvironment",
    "ProjectConfig",
    "ProjectConfigError",
]
