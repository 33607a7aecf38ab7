"""Tests for wheel assembly."""

import zipfile

import pytest
from unittest.mock import Mock

from cdylib_wheel.assembly import build_wheels
from cdylib_wheel.errors import PackagingError
from cdylib_wheel.manifest import ProjectMetadata
from cdylib_wheel.taggers.base import WheelTask

TASKS = [
    WheelTask('cp38-cp38-linux_x86_64', 'mymod.cpython-38-x86_64-linux-gnu.so'),
    WheelTask('cp39-cp39-linux_x86_64', 'mymod.cpython-39-x86_64-linux-gnu.so'),
    WheelTask('cp310-cp310-linux_x86_64', 'mymod.cpython-310-x86_64-linux-gnu.so'),
    WheelTask('cp311-cp311-linux_x86_64', 'mymod.cpython-311-x86_64-linux-gnu.so'),
]


class RecordingWriterFactory:
    """Stands in for WheelWriter; fails when opening the N-th wheel."""

    def __init__(self, output_dir, fail_on=None):
        self.output_dir = output_dir
        self.fail_on = fail_on
        self.calls = []
        self.writers = []

    def __call__(self, tag, output_dir, metadata, scripts, tags):
        self.calls.append((tag, tags))
        if len(self.calls) == self.fail_on:
            raise PackagingError(f'Cannot create wheel for {tag}')
        writer = Mock()
        writer.finish.return_value = self.output_dir / f'mymod-{tag}.whl'
        self.writers.append(writer)
        return writer


@pytest.fixture
def metadata():
    return ProjectMetadata(name='mymod', version='1.0.0')


@pytest.fixture
def artifact(tmp_path):
    path = tmp_path / 'a.so'
    path.write_bytes(b'fake library')
    return path


def test_one_wheel_per_task_in_order(metadata, artifact, tmp_path):
    factory = RecordingWriterFactory(tmp_path)

    paths = build_wheels(TASKS, tmp_path, metadata, artifact, writer_factory=factory)

    assert [tag for tag, _ in factory.calls] == [task.tag for task in TASKS]
    assert all(tags == [tag] for tag, tags in factory.calls)
    assert paths == [tmp_path / f'mymod-{task.tag}.whl' for task in TASKS]
    for writer, task in zip(factory.writers, TASKS):
        writer.add_file.assert_called_once_with(task.library_name, artifact)
        writer.finish.assert_called_once_with()


def test_stops_at_first_failure(metadata, artifact, tmp_path):
    factory = RecordingWriterFactory(tmp_path, fail_on=3)

    with pytest.raises(PackagingError, match='cp310'):
        build_wheels(TASKS, tmp_path, metadata, artifact, writer_factory=factory)

    # the 4th task is never attempted
    assert len(factory.calls) == 3
    assert len(factory.writers) == 2
    assert all(writer.finish.called for writer in factory.writers)


def test_failure_while_adding_file(metadata, artifact, tmp_path):
    good, bad = Mock(), Mock()
    good.finish.return_value = tmp_path / 'first.whl'
    bad.add_file.side_effect = PackagingError('Cannot add a.so')
    factory = Mock(side_effect=[good, bad])

    with pytest.raises(PackagingError, match='Cannot add'):
        build_wheels(TASKS, tmp_path, metadata, artifact, writer_factory=factory)

    good.finish.assert_called_once_with()
    bad.finish.assert_not_called()
    assert factory.call_count == 2


def test_os_error_becomes_packaging_error(metadata, artifact, tmp_path):
    factory = Mock(side_effect=PermissionError('read-only file system'))

    with pytest.raises(PackagingError, match='read-only file system'):
        build_wheels(TASKS, tmp_path, metadata, artifact, writer_factory=factory)


def test_missing_artifact(metadata, tmp_path):
    factory = RecordingWriterFactory(tmp_path)

    with pytest.raises(PackagingError, match='Artifact not found'):
        build_wheels(TASKS, tmp_path, metadata, tmp_path / 'missing.so', writer_factory=factory)

    assert factory.calls == []


def test_no_tasks(metadata, artifact, tmp_path):
    assert build_wheels([], tmp_path / 'out', metadata, artifact) == []


def test_real_wheels_left_on_disk_before_failure(metadata, artifact, tmp_path):
    """Wheels finished before a failing task stay in the output directory."""
    output_dir = tmp_path / 'out'
    tasks = [
        WheelTask('cp38-cp38-linux_x86_64', 'mymod.so'),
        WheelTask('not-a-valid-tag-at-all', 'mymod.so'),
        WheelTask('cp310-cp310-linux_x86_64', 'mymod.so'),
    ]

    with pytest.raises(PackagingError, match='Invalid compatibility tag'):
        build_wheels(tasks, output_dir, metadata, artifact)

    assert [p.name for p in output_dir.glob('*.whl')] == ['mymod-1.0.0-cp38-cp38-linux_x86_64.whl']


def test_reported_to_operator(metadata, artifact, tmp_path, capsys):
    output_dir = tmp_path / 'out'

    (wheel_path,) = build_wheels(TASKS[:1], output_dir, metadata, artifact)

    assert f'successfully created wheel {wheel_path}' in capsys.readouterr().err
    with zipfile.ZipFile(wheel_path) as zf:
        assert zf.read('mymod.cpython-38-x86_64-linux-gnu.so') == b'fake library'
