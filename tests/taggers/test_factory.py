"""Tests for tagger factory."""

import pytest
from pathlib import Path

from cdylib_wheel.interpreter import BridgeModel, Target
from cdylib_wheel.taggers import (
    InterpreterProbeTagger,
    ManifestAbiTagger,
    ManifestDriven,
    ProbeDriven,
    Tagger,
    create_tagger,
)


def test_manifest_driven_creates_manifest_tagger():
    tagger = create_tagger(ManifestDriven(Path('Cargo.toml'), binding='pyo3'))

    assert isinstance(tagger, ManifestAbiTagger)
    assert tagger.manifest_path == Path('Cargo.toml')
    assert tagger.binding == 'pyo3'


def test_probe_driven_creates_probe_tagger():
    target = Target(os='linux', arch='aarch64')
    tagger = create_tagger(ProbeDriven(target, candidates=['python3.12']))

    assert isinstance(tagger, InterpreterProbeTagger)
    assert tagger.target == target
    assert tagger.bridge is BridgeModel.CFFI
    assert tagger.candidates == ['python3.12']


def test_unknown_strategy():
    with pytest.raises(ValueError, match='Unsupported tagging strategy'):
        create_tagger('manifest')


def test_tagger_is_abstract():
    with pytest.raises(TypeError):
        Tagger()
