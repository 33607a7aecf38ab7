"""Wheel archive writer.

Thin layer over ``wheel.wheelfile.WheelFile`` (which keeps the RECORD hashes)
that adds the dist-info payload for a single native library.
"""

import contextlib
import logging
import re
from pathlib import Path
from typing import Mapping, Optional, Sequence

from packaging.tags import parse_tag
from packaging.utils import canonicalize_name
from wheel.wheelfile import WheelError, WheelFile

from . import __version__
from .errors import PackagingError
from .manifest import ProjectMetadata

logger = logging.getLogger(__name__)

_FILENAME_COMPONENT_RE = re.compile(r"[^\s-]+")


def wheel_distribution_name(name: str) -> str:
    """Return the distribution name as used in wheel filenames (``my-pkg`` -> ``my_pkg``)."""
    return canonicalize_name(name).replace("-", "_")


def wheel_filename(metadata: ProjectMetadata, tag: str) -> str:
    return f"{wheel_distribution_name(metadata.name)}-{metadata.version}-{tag}.whl"


def _expand_tags(tag: str) -> list:
    try:
        return sorted(str(t) for t in parse_tag(tag))
    except ValueError as e:
        raise PackagingError(f"Invalid compatibility tag '{tag}'") from e


class WheelWriter:
    """Write one wheel for one compatibility tag.

    Usage::

        writer = WheelWriter(tag, output_dir, metadata, {}, [tag])
        writer.add_file("mymod.so", artifact_path)
        wheel_path = writer.finish()
    """

    def __init__(self, tag: str, output_dir: Path, metadata: ProjectMetadata,
                 scripts: Optional[Mapping[str, str]] = None,
                 tags: Optional[Sequence[str]] = None):
        """Create the output directory and open a new archive in it.

        An existing wheel with the same filename is overwritten.

        Args:
            tag: Compatibility tag used in the filename
            output_dir: Directory the wheel is written to
            metadata: Project metadata for the dist-info
            scripts: Console scripts (name -> "module:function") for entry_points.txt
            tags: Tags listed in the WHEEL file (default: ``[tag]``)

        Raises:
            PackagingError: If the tag is malformed or the archive cannot be created
        """
        self.metadata = metadata
        self.scripts = dict(scripts or {})
        _expand_tags(tag)
        self.tags = [t for entry in (tags or [tag]) for t in _expand_tags(entry)]

        dist_name = wheel_distribution_name(metadata.name)
        for component in (dist_name, metadata.version):
            if not _FILENAME_COMPONENT_RE.fullmatch(component):
                raise PackagingError(f"Cannot use '{component}' in a wheel filename")
        self.dist_info = f"{dist_name}-{metadata.version}.dist-info"

        output_dir = Path(output_dir)
        self.path = output_dir / wheel_filename(metadata, tag)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            self._wheel = WheelFile(self.path, "w")
        except (OSError, WheelError) as e:
            raise PackagingError(f"Cannot create wheel {self.path}: {e}") from e
        logger.debug("Opened %s", self.path)

    def _discard(self):
        with contextlib.suppress(OSError):
            self._wheel.close()
        with contextlib.suppress(OSError):
            self.path.unlink()

    def add_file(self, arcname: str, source: Path):
        """Copy ``source`` into the archive as ``arcname``.

        Raises:
            PackagingError: If the source cannot be read or written
        """
        try:
            self._wheel.write(str(source), arcname)
        except OSError as e:
            self._discard()
            raise PackagingError(f"Cannot add {source} to {self.path.name}: {e}") from e

    def _wheel_file(self) -> str:
        lines = [
            "Wheel-Version: 1.0",
            f"Generator: cdylib-wheel ({__version__})",
            "Root-Is-Purelib: false",
        ]
        lines.extend(f"Tag: {tag}" for tag in self.tags)
        return "\n".join(lines) + "\n"

    def _entry_points_file(self) -> str:
        lines = ["[console_scripts]"]
        lines.extend(f"{name} = {target}" for name, target in sorted(self.scripts.items()))
        return "\n".join(lines) + "\n"

    def finish(self) -> Path:
        """Write the dist-info files, close the archive and return its path.

        Raises:
            PackagingError: If the archive cannot be finalized
        """
        try:
            self._wheel.writestr(f"{self.dist_info}/METADATA", self.metadata.to_metadata_file())
            self._wheel.writestr(f"{self.dist_info}/WHEEL", self._wheel_file())
            if self.scripts:
                self._wheel.writestr(
                    f"{self.dist_info}/entry_points.txt", self._entry_points_file()
                )
            # Writes RECORD
            self._wheel.close()
        except OSError as e:
            self._discard()
            raise PackagingError(f"Cannot finalize {self.path}: {e}") from e
        return self.path
