"""Cargo manifest reader.

Provides the two views of a Rust crate that wheel packaging needs:

- the dependency list with enabled features, from ``cargo metadata``
- the project metadata (name, version, authors, readme...), from ``Cargo.toml``
"""

import json
import logging
import os
import re
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from packaging.version import InvalidVersion, Version

from .errors import ManifestError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

CARGO_METADATA_TIMEOUT = 300

_README_CONTENT_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".rst": "text/x-rst",
}

_AUTHOR_RE = re.compile(r"^\s*(?P<name>[^<]*?)\s*<(?P<email>[^>]+)>\s*$")


def _one_line(value: str) -> str:
    return " ".join(value.split())


@dataclass(frozen=True)
class Dependency:
    """A dependency declared by the root package, with its enabled features."""
    name: str
    features: Tuple[str, ...] = ()


@dataclass
class ProjectMetadata:
    """Core metadata (version 2.1) derived from a Cargo manifest."""

    name: str
    version: str
    summary: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    home_page: Optional[str] = None
    author: Optional[str] = None
    author_email: Optional[str] = None
    license: Optional[str] = None
    requires_python: Optional[str] = None
    requires_dist: List[str] = field(default_factory=list)
    classifiers: List[str] = field(default_factory=list)
    project_urls: Dict[str, str] = field(default_factory=dict)
    description: Optional[str] = None
    description_content_type: Optional[str] = None

    def to_metadata_file(self) -> str:
        """Render the ``METADATA`` file stored in the wheel's dist-info.

        Header values are collapsed onto one line; only the description may
        span several lines, and it goes in the body.
        """
        lines = [
            "Metadata-Version: 2.1",
            f"Name: {self.name}",
            f"Version: {self.version}",
        ]
        if self.summary:
            lines.append(f"Summary: {_one_line(self.summary)}")
        if self.keywords:
            lines.append(f"Keywords: {_one_line(','.join(self.keywords))}")
        if self.home_page:
            lines.append(f"Home-page: {_one_line(self.home_page)}")
        if self.author:
            lines.append(f"Author: {_one_line(self.author)}")
        if self.author_email:
            lines.append(f"Author-email: {_one_line(self.author_email)}")
        if self.license:
            lines.append(f"License: {_one_line(self.license)}")
        if self.requires_python:
            lines.append(f"Requires-Python: {_one_line(self.requires_python)}")
        lines.extend(f"Requires-Dist: {_one_line(req)}" for req in self.requires_dist)
        lines.extend(f"Classifier: {_one_line(classifier)}" for classifier in self.classifiers)
        lines.extend(
            f"Project-URL: {_one_line(label)}, {_one_line(url)}"
            for label, url in self.project_urls.items()
        )
        if self.description_content_type:
            lines.append(f"Description-Content-Type: {self.description_content_type}")

        contents = "\n".join(lines) + "\n"
        if self.description:
            contents += "\n" + self.description.rstrip("\n") + "\n"
        return contents


def normalize_cargo_version(version: str) -> str:
    """Normalize a Cargo (SemVer) version string to PEP 440.

    Examples::

        "0.3.1"          -> "0.3.1"
        "1.0.0-alpha.1"  -> "1.0.0a1"
        "2.0.0-rc.2"     -> "2.0.0rc2"
        "1.2.3+build.7"  -> "1.2.3+build.7"

    Raises:
        ManifestError: If the version has no PEP 440 equivalent
    """
    try:
        return str(Version(version))
    except InvalidVersion as e:
        raise ManifestError(
            f"Version '{version}' cannot be expressed as a Python package version"
        ) from e


def split_cargo_author(author: str) -> Tuple[str, Optional[str]]:
    """Split a Cargo author entry ``"Name <email>"`` into (name, email)."""
    match = _AUTHOR_RE.match(author)
    if not match:
        return author.strip(), None
    return match.group("name"), match.group("email")


def _cargo_executable() -> str:
    return os.environ.get("CARGO", "cargo")


def _run_cargo_metadata(manifest_path: Path) -> Dict[str, Any]:
    cargo = _cargo_executable()
    cmd = [
        cargo, "metadata",
        "--format-version", "1",
        "--no-deps",
        "--manifest-path", str(manifest_path),
    ]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=False,
            timeout=CARGO_METADATA_TIMEOUT,
        )
    except FileNotFoundError:
        raise ManifestError(f"cargo executable not found: {cargo!r}") from None
    except subprocess.TimeoutExpired as e:
        raise ManifestError(f"cargo metadata timed out for {manifest_path}") from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise ManifestError(
            f"cargo metadata failed (rc={result.returncode}): {stderr[-300:]}"
        )

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ManifestError(f"cargo metadata returned invalid JSON: {e}") from e


def _root_package(metadata: Dict[str, Any], manifest_path: Path) -> Dict[str, Any]:
    packages = metadata.get("packages") or []
    for package in packages:
        package_manifest = package.get("manifest_path")
        if package_manifest and Path(package_manifest).resolve() == manifest_path:
            return package
    if len(packages) == 1:
        return packages[0]
    raise ManifestError(f"No root package found for {manifest_path}")


def read_dependencies(manifest_path: Path) -> List[Dependency]:
    """Return the root package's dependencies as reported by ``cargo metadata``.

    Args:
        manifest_path: Path to the crate's Cargo.toml

    Returns:
        Dependencies in declaration order, each with its enabled features

    Raises:
        ManifestError: If cargo is unavailable, fails, or reports no root package
    """
    manifest_path = Path(manifest_path).expanduser().resolve()
    logger.info("manifest path: %s", manifest_path)
    package = _root_package(_run_cargo_metadata(manifest_path), manifest_path)

    return [
        Dependency(name=dep["name"], features=tuple(dep.get("features") or ()))
        for dep in package.get("dependencies") or []
    ]


def _load_cargo_toml(manifest_path: Path) -> Dict[str, Any]:
    try:
        with open(manifest_path, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        raise ManifestError(f"Cannot read {manifest_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(f"Cannot parse {manifest_path}: {e}") from e


def _package_field(package: Dict[str, Any], key: str, manifest_path: Path) -> Any:
    value = package.get(key)
    if isinstance(value, dict) and value.get("workspace"):
        raise ManifestError(
            f"{manifest_path}: package.{key} is inherited from the workspace, "
            f"which is not supported"
        )
    return value


def _read_readme(manifest_dir: Path, readme: str) -> Tuple[str, str]:
    readme_path = manifest_dir / readme
    try:
        text = readme_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot read readme {readme_path}: {e}") from e
    content_type = _README_CONTENT_TYPES.get(readme_path.suffix.lower(), "text/plain")
    return text, content_type


def read_project_metadata(manifest_path: Path) -> ProjectMetadata:
    """Build the wheel's core metadata from the ``[package]`` table of Cargo.toml.

    The readme, if declared, is resolved relative to the manifest's directory.
    Extra Python-only fields are read from ``[package.metadata.maturin]``.

    Raises:
        ManifestError: If the manifest is unreadable or lacks name/version
    """
    manifest_path = Path(manifest_path).expanduser().resolve()
    cargo_toml = _load_cargo_toml(manifest_path)

    package = cargo_toml.get("package")
    if not isinstance(package, dict):
        raise ManifestError(f"{manifest_path}: missing [package] table")

    name = _package_field(package, "name", manifest_path)
    version = _package_field(package, "version", manifest_path)
    if not name:
        raise ManifestError(f"{manifest_path}: missing package.name")
    if not version:
        raise ManifestError(f"{manifest_path}: missing package.version")

    metadata = ProjectMetadata(name=name, version=normalize_cargo_version(version))
    metadata.summary = _package_field(package, "description", manifest_path)
    metadata.license = _package_field(package, "license", manifest_path)
    metadata.home_page = _package_field(package, "homepage", manifest_path)
    metadata.keywords = list(_package_field(package, "keywords", manifest_path) or [])

    authors = _package_field(package, "authors", manifest_path) or []
    if authors:
        # Core metadata has room for a single author
        metadata.author, metadata.author_email = split_cargo_author(authors[0])

    for label, key in (("Source Code", "repository"), ("Documentation", "documentation")):
        url = _package_field(package, key, manifest_path)
        if url:
            metadata.project_urls[label] = url

    readme = _package_field(package, "readme", manifest_path)
    if isinstance(readme, str):
        metadata.description, metadata.description_content_type = _read_readme(
            manifest_path.parent, readme
        )

    extra = (package.get("metadata") or {}).get("maturin") or {}
    metadata.requires_python = extra.get("requires-python")
    metadata.requires_dist = list(extra.get("requires-dist") or [])
    metadata.classifiers = list(extra.get("classifiers") or extra.get("classifier") or [])
    metadata.project_urls.update(extra.get("project-url") or {})

    return metadata
