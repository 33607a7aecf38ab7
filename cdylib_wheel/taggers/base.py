"""Base interface for taggers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class WheelTask:
    """One wheel to produce: its compatibility tag and the library filename inside it."""
    tag: str
    library_name: str


class Tagger(ABC):
    """Abstract base class for tagging strategies.

    Each strategy (manifest ABI, interpreter probe) implements this interface,
    so wheel assembly consumes the same task list whichever one is selected.
    """

    @abstractmethod
    def resolve(self, module_name: str) -> List[WheelTask]:
        """Return the wheels to build for ``module_name``, in build order.

        Args:
            module_name: Name of the Python module the library provides

        Returns:
            List of WheelTask, possibly empty
        """
        pass
