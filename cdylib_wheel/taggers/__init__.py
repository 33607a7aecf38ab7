"""Compatibility-tag resolution strategies.

Each strategy turns its inputs into the list of wheels to produce:
- Manifest ABI: one stable-ABI (abi3) wheel, from the binding crate's features
- Interpreter probe: one wheel per Python interpreter found on the host
"""

from .base import Tagger, WheelTask
from .manifest_abi import ManifestAbiTagger
from .interpreter_probe import InterpreterProbeTagger
from .factory import ManifestDriven, ProbeDriven, TaggingStrategy, create_tagger

__all__ = [
    'Tagger',
    'WheelTask',
    'ManifestAbiTagger',
    'InterpreterProbeTagger',
    'ManifestDriven',
    'ProbeDriven',
    'TaggingStrategy',
    'create_tagger',
]
