"""Public Python API for hopper.

The package exposes the build pipeline (bundling, build-time evaluation,
run-time bootstrap generation) and the component protocol used at build
time. Authoring stand-ins for addon modules live in ``hopper.script_globals``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from hopper.artifacts import ArtifactKind, FileArtifact
from hopper.banner import generate_banner
from hopper.bootstrap import generate_bootstrap
from hopper.build import BuildOptions, BuildResult, ComMojangPath, OutPath, build, clean
from hopper.bundler import bundle_entry
from hopper.elision import split_phases
from hopper.errors import (
    BundleError,
    HopperError,
    InputNotFoundError,
    ManifestError,
    NoAddonError,
    ProtocolError,
    RegistrationError,
)
from hopper.manifest import load_manifest
from hopper.protocol import BuildSession, Component
from hopper.sandbox import collect_file_artifacts

try:
    __version__: str = version("hopper-addons")
except PackageNotFoundError:  # pragma: no cover - editable local fallback
    __version__ = "0.1.0"


__all__ = [
    "__version__",
    "ArtifactKind",
    "BuildOptions",
    "BuildResult",
    "BuildSession",
    "BundleError",
    "ComMojangPath",
    "Component",
    "FileArtifact",
    "HopperError",
    "InputNotFoundError",
    "ManifestError",
    "NoAddonError",
    "OutPath",
    "ProtocolError",
    "RegistrationError",
    "build",
    "bundle_entry",
    "clean",
    "collect_file_artifacts",
    "generate_banner",
    "generate_bootstrap",
    "load_manifest",
    "split_phases",
]
