"""Build orchestrator: lint, clean the staging directory, produce distributables.

The build is a straight line::

    lint (optional, permissive, missing linter tolerated)
      -> remove the staging directory
      -> for each distributable, in declaration order: run its recipe
      -> done

A recipe kind the orchestrator does not know is a configuration bug and
aborts the whole build with :class:`~fusepack.exceptions.ConfigError`. A
bundle that stops on a non-literal ``require`` (abort policy) raises
:class:`~fusepack.exceptions.DynamicReferenceError`.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fusepack.bundler import DynamicReference, bundle
from fusepack.exceptions import ConfigError, DynamicReferenceError, InstallError
from fusepack.models import BuildRecipe, DynamicReferencePolicy, ProjectConfig, RecipeKind
from fusepack.output import info, success, warning
from fusepack.tools.lint import LintOutcome, run_lint

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """What a build produced.

    Attributes:
        outputs: Staged files, in declaration order.
        warnings: Dynamic references tolerated under the warn policy.
        lint: Lint outcome, or ``None`` when lint was not requested.
    """

    outputs: list[Path] = field(default_factory=list)
    warnings: list[DynamicReference] = field(default_factory=list)
    lint: Optional[LintOutcome] = None


def clean(config: ProjectConfig) -> bool:
    """Remove the staging directory. Returns ``True`` if something was removed."""
    staging = config.staging_path
    if not staging.exists():
        return False
    shutil.rmtree(staging)
    logger.debug("Removed %s", staging)
    return True


def _build_bundle(
    config: ProjectConfig,
    output: str,
    recipe: BuildRecipe,
    destination: Path,
    policy: DynamicReferencePolicy,
    report: BuildReport,
) -> None:
    if not recipe.entry:
        raise ConfigError(f"Bundle recipe for '{output}' has no 'entry'")
    result = bundle(
        config.source_path / recipe.entry,
        config.search_paths,
        root=config.root,
        policy=policy,
        lua_version=config.lua_version,
    )
    for found in result.warnings:
        warning(found.describe())
    report.warnings.extend(result.warnings)
    if not result.ok:
        assert result.failure is not None
        raise DynamicReferenceError(f"Bundle of '{output}' aborted: {result.failure.describe()}")

    assert result.source is not None
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(result.source, encoding="utf-8", errors="surrogateescape", newline="\n")
    info(f"Created a Lua bundle: {destination} ({len(result.modules)} modules)")


def _build_copy(
    config: ProjectConfig,
    output: str,
    recipe: BuildRecipe,
    destination: Path,
    policy: DynamicReferencePolicy,
    report: BuildReport,
) -> None:
    if not recipe.source:
        raise ConfigError(f"Copy recipe for '{output}' has no 'source'")
    source = config.root / recipe.source
    if not source.is_file():
        raise ConfigError(f"Copy recipe for '{output}': source file not found: {source}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copyfile(source, destination)
    except OSError as exc:
        raise InstallError(f"Cannot stage {source}: {exc}") from exc
    info(f"Copied: {destination}")


_RecipeBuilder = Callable[
    [ProjectConfig, str, BuildRecipe, Path, DynamicReferencePolicy, BuildReport], None
]

_BUILDERS: dict[str, _RecipeBuilder] = {
    RecipeKind.BUNDLE.value: _build_bundle,
    RecipeKind.COPY.value: _build_copy,
}


def build(
    config: ProjectConfig,
    lint: bool = True,
    policy: Optional[DynamicReferencePolicy] = None,
    timeout: Optional[float] = None,
) -> BuildReport:
    """Run the full build and return a :class:`BuildReport`.

    Args:
        config: Project configuration; its distributables table drives the build.
        lint: Run the linter first (permissive, missing linter tolerated).
        policy: Dynamic-reference policy. Defaults to ``config.policy``.
        timeout: Linter timeout in seconds.

    Raises:
        ConfigError: On an unknown recipe kind or an incomplete recipe.
        DynamicReferenceError: When a bundle is aborted by the policy.
        BundleGraphError: When a module graph cannot be built.
        ToolExecutionError: When the linter reports errors.
    """
    report = BuildReport()
    if lint:
        report.lint = run_lint(config, permissive=True, tolerate_missing=True, timeout=timeout)

    clean(config)

    effective_policy = policy or config.policy
    for output, recipe in config.distributables.items():
        builder = _BUILDERS.get(recipe.kind)
        if builder is None:
            raise ConfigError(
                f"Don't know how to build '{output}': unknown recipe kind '{recipe.kind}'"
            )
        destination = config.staging_path / output
        builder(config, output, recipe, destination, effective_policy, report)
        report.outputs.append(destination)

    success(f"Build complete: {len(report.outputs)} file(s) in {config.staging_path}")
    return report
