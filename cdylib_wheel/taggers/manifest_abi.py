"""Stable-ABI tagging from the binding crate's declared features."""

import logging
import re
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from ..errors import ConfigurationError
from ..manifest import Dependency, read_dependencies
from .base import Tagger, WheelTask

logger = logging.getLogger(__name__)

DEFAULT_BINDING = "pyo3"

# Wheels tagged from the manifest are always for this platform; other
# platforms need --tag-with-python.
MANIFEST_PLATFORM_TAG = "linux_x86_64"

_ABI3_PREFIX = "abi3-py"
_UNSIGNED_INT_RE = re.compile(r"[0-9]+")


def parse_abi3_feature(feature: str) -> Optional[str]:
    """Return the minimum Python version a feature declares, or None.

    Examples::

        "abi3"       -> "3"
        "abi3-py37"  -> "37"
        "macros"     -> None
    """
    if feature == "abi3":
        return "3"
    if feature.startswith(_ABI3_PREFIX):
        return feature[len(_ABI3_PREFIX):]
    return None


def minimum_abi3_version(features: Iterable[str]) -> str:
    """Return the lowest Python version among the abi3 features.

    Raises:
        ConfigurationError: If no feature is an abi3 marker, or an
            ``abi3-py`` suffix is not a plain number
    """
    versions = set()
    for feature in features:
        version = parse_abi3_feature(feature)
        if version is None:
            continue
        if not _UNSIGNED_INT_RE.fullmatch(version):
            raise ConfigurationError(
                f"Invalid ABI3 feature '{feature}': "
                f"expected 'abi3' or '{_ABI3_PREFIX}<digits>'"
            )
        versions.add(version)

    if not versions:
        raise ConfigurationError("no ABI3 feature flags found")

    return min(versions, key=int)


class ManifestAbiTagger(Tagger):
    """Tag a single abi3 wheel from the Cargo manifest, without touching any interpreter.

    The wheel must load on the oldest interpreter the crate declares support
    for, so the lowest ``abi3-py<N>`` feature of the binding dependency wins.
    """

    def __init__(self, manifest_path: Path, binding: str = DEFAULT_BINDING,
                 dependency_reader: Callable[[Path], List[Dependency]] = read_dependencies):
        """Initialize the tagger.

        Args:
            manifest_path: Path to the crate's Cargo.toml
            binding: Name of the Python binding crate (default: pyo3)
            dependency_reader: Returns the root package's dependencies
        """
        self.manifest_path = manifest_path
        self.binding = binding
        self.dependency_reader = dependency_reader

    def tag_from_dependencies(self, dependencies: Sequence[Dependency]) -> str:
        binding = next((dep for dep in dependencies if dep.name == self.binding), None)
        if binding is None:
            raise ConfigurationError(
                f"missing required binding dependency '{self.binding}' "
                f"in {self.manifest_path}"
            )

        try:
            version = minimum_abi3_version(binding.features)
        except ConfigurationError as e:
            raise ConfigurationError(f"{e} on dependency '{self.binding}'") from e
        logger.info("Found minimum supported Python ABI version from Cargo.toml: %s", version)

        return f"cp{version}-abi3-{MANIFEST_PLATFORM_TAG}"

    def resolve(self, module_name: str) -> List[WheelTask]:
        tag = self.tag_from_dependencies(self.dependency_reader(self.manifest_path))
        return [WheelTask(tag=tag, library_name=f"{module_name}.so")]
