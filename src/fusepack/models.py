"""Pydantic models describing a fusepack project.

A single :class:`ProjectConfig` holds everything a task needs: where the
sources live, how to reach the external linter and interpreter, which Lua
dialect the bundler should accept, and the table of distributables to build
and install. It is resolved once per invocation by
:func:`~fusepack.config.resolve_config` and passed explicitly to every task;
the model is frozen so no task can alter the table another task sees.

The defaults reproduce the layout of a typical Fusion script project::

    src/main.lua        entry module
    lib/*.lua           vendored libraries
    test/*.lua          test scripts run with luajit
    dist/               staging directory
"""

from __future__ import annotations

import enum
from pathlib import Path, PurePosixPath
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LuaVersion(str, enum.Enum):
    """Lua dialects the bundler's scanner understands."""

    LUA_51 = "5.1"
    LUA_52 = "5.2"
    LUA_53 = "5.3"
    LUA_54 = "5.4"
    LUAJIT = "LuaJIT"


class DynamicReferencePolicy(str, enum.Enum):
    """What the bundler does when it meets a non-literal ``require``.

    ``WARN`` records the reference and keeps bundling; ``ABORT`` stops and
    returns a failed result.
    """

    WARN = "warn"
    ABORT = "abort"


class RecipeKind(str, enum.Enum):
    """Recipe kinds the build orchestrator knows how to produce."""

    BUNDLE = "bundle"
    COPY = "copy"


class BuildRecipe(BaseModel):
    """How to produce one distributable file.

    ``kind`` is a free-form string so that a typo in a project file reaches
    the orchestrator, which rejects it with a :class:`~fusepack.exceptions.ConfigError`
    naming the offending output path. Recipe-specific fields:

    * ``bundle`` -- ``entry``: entry module, relative to the source directory.
    * ``copy`` -- ``source``: file to copy verbatim, relative to the project root.

    Example::

        BuildRecipe(kind="bundle", entry="main.lua")
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    kind: str = Field(description="Recipe kind: bundle or copy")
    entry: Optional[str] = Field(
        default=None, description="Entry module for bundle recipes"
    )
    source: Optional[str] = Field(
        default=None, description="Source file for copy recipes"
    )


class HostConfig(BaseModel):
    """Names used to locate the host application's plugin root."""

    model_config = ConfigDict(frozen=True)

    vendor: str = "Blackmagic Design"
    app: str = "DaVinci Resolve"
    linux_app: str = Field(
        default="DaVinciResolve",
        description="Application directory name under ~/.local/share on Linux",
    )
    subdir: str = "Fusion"


class LintConfig(BaseModel):
    """External linter invocation."""

    model_config = ConfigDict(frozen=True)

    command: list[str] = Field(default_factory=lambda: ["luacheck"])
    cache: bool = Field(default=True, description="Pass --cache to the linter")
    targets: list[str] = Field(default_factory=lambda: ["src", "lib"])


class HarnessConfig(BaseModel):
    """External interpreter used by ``fusepack test``."""

    model_config = ConfigDict(frozen=True)

    interpreter: list[str] = Field(default_factory=lambda: ["luajit"])
    pattern: str = Field(default="test/**/*.lua", description="Test file glob")
    path_variable: str = Field(
        default="LUA_PATH", description="Module search variable set for each run"
    )


class WatchConfig(BaseModel):
    """Source trees observed by ``fusepack watch``."""

    model_config = ConfigDict(frozen=True)

    patterns: list[str] = Field(default_factory=lambda: ["lib/**", "src/**"])
    interval: float = Field(default=0.5, gt=0, description="Polling interval in seconds")


def _default_distributables() -> dict[str, BuildRecipe]:
    return {
        "Scripts/Utility/Voice Hopper.lua": BuildRecipe(kind="bundle", entry="main.lua"),
    }


class ProjectConfig(BaseModel):
    """Effective configuration for one fusepack invocation.

    ``distributables`` maps an output path, relative to both the staging
    directory and the plugin root, to the recipe that produces it. Entries
    are built and installed in declaration order.
    """

    model_config = ConfigDict(frozen=True)

    root: Path = Field(default=Path("."), description="Project root directory")
    source_dir: str = "src"
    lib_dir: str = "lib"
    staging_dir: str = "dist"
    lua_version: LuaVersion = LuaVersion.LUAJIT
    search_paths: list[str] = Field(
        default_factory=lambda: ["src/?.lua", "lib/?.lua"],
        description="package.path-style templates, relative to the project root",
    )
    policy: DynamicReferencePolicy = DynamicReferencePolicy.WARN
    tool_timeout: Optional[float] = Field(
        default=None, gt=0, description="Seconds before an external tool is killed"
    )
    host: HostConfig = Field(default_factory=HostConfig)
    lint: LintConfig = Field(default_factory=LintConfig)
    harness: HarnessConfig = Field(default_factory=HarnessConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    distributables: dict[str, BuildRecipe] = Field(default_factory=_default_distributables)

    @field_validator("distributables")
    @classmethod
    def _relative_outputs(cls, value: dict[str, BuildRecipe]) -> dict[str, BuildRecipe]:
        for output in value:
            path = PurePosixPath(output.replace("\\", "/"))
            if not output or path.is_absolute() or ".." in path.parts:
                raise ValueError(
                    f"distributable path must be relative and stay inside the plugin root: {output!r}"
                )
        return value

    @field_validator("search_paths")
    @classmethod
    def _templates_have_placeholder(cls, value: list[str]) -> list[str]:
        for template in value:
            if "?" not in template:
                raise ValueError(f"search path template has no '?' placeholder: {template!r}")
        return value

    @property
    def source_path(self) -> Path:
        return self.root / self.source_dir

    @property
    def lib_path(self) -> Path:
        return self.root / self.lib_dir

    @property
    def staging_path(self) -> Path:
        return self.root / self.staging_dir
