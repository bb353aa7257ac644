"""Contract every versioned OPNsense protocol implementation fulfils."""

from abc import ABC, abstractmethod

from ..models import BackupResult, ServerConnection


class BackupProtocol(ABC):
    """One server version's login → backup page → download sequence."""

    #: Version string the implementation is registered under
    version: str = ""

    @abstractmethod
    def execute(self, connection: ServerConnection) -> BackupResult:
        """Run the whole sequence against *connection* with a fresh session.

        Raises a BackupError subclass on the first failing step.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} version={self.version!r}>"
