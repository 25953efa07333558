"""Abstract base class for case sources."""

from abc import ABC, abstractmethod
from collections.abc import Sequence


class CaseSource(ABC):
    """Enumerates the case identifiers available in each suite."""

    @abstractmethod
    def suites(self) -> Sequence[str]:
        """Return the suite names this source knows about."""

    @abstractmethod
    async def list_cases(self, suite: str) -> Sequence[str]:
        """List case identifiers of a suite in listing order.

        Raises:
            UnknownSuiteError: If the suite is not known to this source

        """
