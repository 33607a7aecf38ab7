"""Tests for the YAML build configuration."""

import pytest

from cdylib_wheel.config import BuildConfig
from cdylib_wheel.errors import ConfigurationError


def write_config(tmp_path, text):
    path = tmp_path / 'cdylib-wheel.yaml'
    path.write_text(text)
    return path


def test_defaults():
    config = BuildConfig()

    assert config.binding == 'pyo3'
    assert config.interpreters is None
    assert config.scripts == {}


def test_full_config(tmp_path):
    config = BuildConfig.from_yaml(write_config(tmp_path, """
binding: pyo3-fork
interpreters:
  - python3.11
  - /opt/python/cp312/bin/python
scripts:
  mytool: mymod:main
"""))

    assert config.binding == 'pyo3-fork'
    assert config.interpreters == ['python3.11', '/opt/python/cp312/bin/python']
    assert config.scripts == {'mytool': 'mymod:main'}


def test_empty_file(tmp_path):
    assert BuildConfig.from_yaml(write_config(tmp_path, '')) == BuildConfig()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match='Cannot read config file'):
        BuildConfig.from_yaml(tmp_path / 'missing.yaml')


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigurationError, match='Invalid config file'):
        BuildConfig.from_yaml(write_config(tmp_path, 'binding: [pyo3\n'))


@pytest.mark.parametrize('text, message', [
    ('- pyo3\n', 'expected a mapping'),
    ('bindings: pyo3\n', 'unknown keys: bindings'),
    ('binding: 3\n', "'binding' must be a crate name"),
    ('interpreters: python3\n', "'interpreters' must be a list"),
    ('scripts: [mytool]\n', "'scripts' must map"),
])
def test_invalid_values(tmp_path, text, message):
    with pytest.raises(ConfigurationError, match=message):
        BuildConfig.from_yaml(write_config(tmp_path, text))
