"""Factory for creating a tagger from the selected tagging strategy."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from ..interpreter import BridgeModel, Target
from .base import Tagger
from .interpreter_probe import InterpreterProbeTagger
from .manifest_abi import DEFAULT_BINDING, ManifestAbiTagger


@dataclass(frozen=True)
class ManifestDriven:
    """Tag from the binding crate's abi3 features in Cargo.toml."""
    manifest_path: Path
    binding: str = DEFAULT_BINDING


@dataclass(frozen=True)
class ProbeDriven:
    """Tag from the interpreters found on the host."""
    target: Target
    bridge: BridgeModel = BridgeModel.CFFI
    candidates: Optional[Sequence[str]] = None


TaggingStrategy = Union[ManifestDriven, ProbeDriven]


def create_tagger(strategy: TaggingStrategy) -> Tagger:
    """Create the Tagger implementation for a strategy.

    Mapping:
    - ManifestDriven -> ManifestAbiTagger
    - ProbeDriven    -> InterpreterProbeTagger
    """
    if isinstance(strategy, ManifestDriven):
        return ManifestAbiTagger(strategy.manifest_path, binding=strategy.binding)
    if isinstance(strategy, ProbeDriven):
        return InterpreterProbeTagger(
            strategy.target, bridge=strategy.bridge, candidates=strategy.candidates
        )

    raise ValueError(f"Unsupported tagging strategy: {strategy!r}")
