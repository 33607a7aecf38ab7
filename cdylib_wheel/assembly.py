"""Wheel assembly: one wheel per WheelTask, strictly in order."""

import logging
import sys
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from .errors import PackagingError
from .manifest import ProjectMetadata
from .taggers.base import WheelTask
from .writer import WheelWriter

logger = logging.getLogger(__name__)


def build_wheel(task: WheelTask, output_dir: Path, metadata: ProjectMetadata,
                artifact_path: Path, scripts: Optional[Mapping[str, str]] = None,
                writer_factory: Callable[..., WheelWriter] = WheelWriter) -> Path:
    """Package ``artifact_path`` as ``task.library_name`` in a wheel tagged ``task.tag``."""
    writer = writer_factory(task.tag, output_dir, metadata, scripts or {}, [task.tag])
    writer.add_file(task.library_name, artifact_path)
    wheel_path = writer.finish()

    print(f"📦 successfully created wheel {wheel_path}", file=sys.stderr)
    return wheel_path


def build_wheels(tasks: Sequence[WheelTask], output_dir: Path, metadata: ProjectMetadata,
                 artifact_path: Path, scripts: Optional[Mapping[str, str]] = None,
                 writer_factory: Callable[..., WheelWriter] = WheelWriter) -> List[Path]:
    """Build one wheel per task, in order, stopping at the first failure.

    Wheels finished before a failure are left in ``output_dir``; the
    remaining tasks are not attempted. Two tasks with the same tag
    write the same file, and the later one wins.

    Args:
        tasks: Wheels to build, as produced by a tagger
        output_dir: Directory for the wheels (created if missing)
        metadata: Project metadata written into every wheel
        artifact_path: Compiled native library, re-read for every wheel
        scripts: Console scripts for entry_points.txt
        writer_factory: Creates the archive writer (WheelWriter signature)

    Returns:
        Paths of the wheels written

    Raises:
        PackagingError: If any wheel cannot be created, written or finalized
    """
    artifact_path = Path(artifact_path)
    if not artifact_path.is_file():
        raise PackagingError(f"Artifact not found: {artifact_path}")

    wheel_paths = []
    for index, task in enumerate(tasks, start=1):
        logger.debug("Building wheel %d/%d for %s", index, len(tasks), task.tag)
        try:
            wheel_paths.append(build_wheel(
                task, output_dir, metadata, artifact_path,
                scripts=scripts, writer_factory=writer_factory,
            ))
        except PackagingError:
            raise
        except OSError as e:
            raise PackagingError(f"Failed to build wheel for {task.tag}: {e}") from e

    return wheel_paths
