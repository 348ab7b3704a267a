"""Build orchestration: inputs in, behavior/resource pack trees out."""

from __future__ import annotations

import os
import re
import shutil
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

from hopper.artifacts import BP_PREFIX, RP_PREFIX, FileArtifact
from hopper.assembly import assemble_bundle
from hopper.banner import generate_banner
from hopper.bundler import bundle_entry
from hopper.elision import split_phases
from hopper.errors import InputNotFoundError, RegistrationError
from hopper.manifest import load_manifest
from hopper.sandbox import collect_file_artifacts


MANIFEST_FILENAME = "manifest.json"
BUNDLE_RELATIVE_PATH = Path("scripts") / "bundle.py"
BEHAVIOR_PACKS_DIR = "development_behavior_packs"
RESOURCE_PACKS_DIR = "development_resource_packs"
DEFAULT_COM_MOJANG_PATH = (
    "%localappdata%\\Packages\\Microsoft.MinecraftUWP_8wekyb3d8bbwe"
    "\\LocalState\\games\\com.mojang"
)

_ENV_PLACEHOLDER = re.compile(r"%([^%]+)%")


@dataclass(frozen=True)
class OutPath:
    """Write packs to ``<path>/BP`` and ``<path>/RP``."""

    path: Path


@dataclass(frozen=True)
class ComMojangPath:
    """Write packs into the development pack folders of a com.mojang directory."""

    path: Path


OutTarget = Union[OutPath, ComMojangPath]


@dataclass(frozen=True)
class BuildOptions:
    name: str
    entry_path: Path
    assets_path: Path
    out: OutTarget
    include_rp: bool = True
    optimize: bool = False
    copy_assets: bool = True


@dataclass(frozen=True)
class OutDirs:
    bp: Path
    rp: Path


@dataclass
class BuildResult:
    out_dirs: OutDirs
    bundle_path: Path
    artifacts: List[FileArtifact] = field(default_factory=list)


def resolve_env_placeholders(path: str) -> str:
    """Expand ``%VAR%`` placeholders; unknown variables expand to ``""``."""
    return _ENV_PLACEHOLDER.sub(lambda match: os.environ.get(match.group(1), ""), path)


def resolve_out_dirs(name: str, out: OutTarget) -> OutDirs:
    if isinstance(out, OutPath):
        return OutDirs(bp=Path(out.path) / BP_PREFIX, rp=Path(out.path) / RP_PREFIX)
    root = Path(out.path)
    return OutDirs(
        bp=root / BEHAVIOR_PACKS_DIR / name,
        rp=root / RESOURCE_PACKS_DIR / name,
    )


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _require_file(path: Path) -> None:
    if not path.is_file():
        raise InputNotFoundError(f"'{path}' does not exist")


def _write_artifacts(
    artifacts: List[FileArtifact], out_dirs: OutDirs, *, include_rp: bool
) -> None:
    for artifact in artifacts:
        if artifact.side == BP_PREFIX:
            target_root = out_dirs.bp
        elif artifact.side == RP_PREFIX:
            if not include_rp:
                warnings.warn(
                    f"Skipping '{artifact.path}' because the build has no resource pack.",
                    stacklevel=3,
                )
                continue
            target_root = out_dirs.rp
        else:
            raise RegistrationError(
                f"Artifact '{artifact.path}' is not rooted under '{BP_PREFIX}' or '{RP_PREFIX}'."
            )
        _write_text(target_root / artifact.relative_path, artifact.content)


def build(options: BuildOptions) -> BuildResult:
    """Build the addon described by ``options``.

    Steps: check inputs, bundle the entry module, evaluate it at build time to
    collect files, write packs, then assemble and write the script bundle.
    Files written before a failure are left on disk.

    Raises:
        InputNotFoundError: If a manifest or the entry module is missing.
        BundleError: If the addon source cannot be parsed.
        NoAddonError: If the entry module never establishes an addon.
        ProtocolError: If the addon source breaks the component lifecycle.
        ManifestError: If the behavior pack manifest is unusable.
    """
    assets_path = Path(options.assets_path)
    bp_manifest_path = assets_path / BP_PREFIX / MANIFEST_FILENAME
    rp_manifest_path = assets_path / RP_PREFIX / MANIFEST_FILENAME

    _require_file(bp_manifest_path)
    if options.include_rp:
        _require_file(rp_manifest_path)
    _require_file(Path(options.entry_path))

    bundle_source = bundle_entry(options.entry_path)
    artifacts = collect_file_artifacts(bundle_source)
    bp_manifest = load_manifest(bp_manifest_path)

    out_dirs = resolve_out_dirs(options.name, options.out)
    out_dirs.bp.mkdir(parents=True, exist_ok=True)
    if options.include_rp:
        out_dirs.rp.mkdir(parents=True, exist_ok=True)

    if options.copy_assets:
        shutil.copytree(assets_path / BP_PREFIX, out_dirs.bp, dirs_exist_ok=True)
        if options.include_rp:
            shutil.copytree(assets_path / RP_PREFIX, out_dirs.rp, dirs_exist_ok=True)

    shutil.copyfile(bp_manifest_path, out_dirs.bp / MANIFEST_FILENAME)
    if options.include_rp:
        shutil.copyfile(rp_manifest_path, out_dirs.rp / MANIFEST_FILENAME)

    _write_artifacts(artifacts, out_dirs, include_rp=options.include_rp)

    runtime_code = split_phases(bundle_source).runtime
    final_bundle = assemble_bundle(
        generate_banner(bp_manifest.dependencies),
        runtime_code,
        optimize=options.optimize,
    )
    bundle_path = out_dirs.bp / BUNDLE_RELATIVE_PATH
    _write_text(bundle_path, final_bundle)

    return BuildResult(out_dirs=out_dirs, bundle_path=bundle_path, artifacts=artifacts)


def clean(name: str, com_mojang_path: Union[str, Path]) -> List[Path]:
    """Remove a project's development packs; returns the directories removed."""
    out_dirs = resolve_out_dirs(name, ComMojangPath(Path(com_mojang_path)))
    removed: List[Path] = []
    for directory in (out_dirs.bp, out_dirs.rp):
        if directory.exists():
            shutil.rmtree(directory)
            removed.append(directory)
    return removed
