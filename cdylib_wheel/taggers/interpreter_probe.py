"""Tagging from the Python interpreters installed on the host."""

import logging
from typing import Callable, List, Optional, Sequence

from ..errors import DiscoveryError
from ..interpreter import BridgeModel, PlatformPolicy, PythonInterpreter, Target, find_all
from .base import Tagger, WheelTask

logger = logging.getLogger(__name__)

# Wheels built outside a manylinux image (e.g. with Nix) are never manylinux compatible
PLATFORM_POLICY = PlatformPolicy.OFF


class InterpreterProbeTagger(Tagger):
    """One wheel per interpreter found, ignoring any ABI intent in the manifest."""

    def __init__(self, target: Target, bridge: BridgeModel = BridgeModel.CFFI,
                 candidates: Optional[Sequence[str]] = None,
                 finder: Callable[..., List[PythonInterpreter]] = find_all):
        self.target = target
        self.bridge = bridge
        self.candidates = candidates
        self.finder = finder

    def discover(self) -> List[PythonInterpreter]:
        logger.info("Looking for Python interpreters...")
        try:
            interpreters = self.finder(self.target, self.bridge, self.candidates)
        except OSError as e:
            raise DiscoveryError(f"Interpreter discovery failed: {e}") from e

        for interpreter in interpreters:
            logger.info("Found %s", interpreter)
        if not interpreters:
            logger.warning("No Python interpreters found; no wheels will be built")
        return interpreters

    def resolve(self, module_name: str) -> List[WheelTask]:
        return [
            WheelTask(
                tag=interpreter.get_tag(PLATFORM_POLICY),
                library_name=interpreter.get_library_name(module_name),
            )
            for interpreter in self.discover()
        ]
