"""Exception hierarchy for sheaf.

Configuration problems are reported before any traversal starts;
I/O problems abort the running bulk action and carry the offending path.
"""

from pathlib import Path


class SheafError(Exception):
    """Base exception for all sheaf errors."""


class ConfigurationError(SheafError, ValueError):
    """Raised when a pattern, filter or relocation path is invalid."""


class TraversalIOError(SheafError, OSError):
    """Raised when a filesystem operation fails during a traversal.

    The original ``OSError`` is available as ``__cause__``.

    Attributes:
        path: Path that was being processed when the failure occurred.
    """

    def __init__(self, path: Path, error: OSError) -> None:
        self.path = path
        reason = error.strerror or str(error)
        super().__init__(f"{reason}: {path}")


class DestinationConflictError(SheafError):
    """Raised when a destination is occupied by an entry of the other kind.

    Copying or moving a directory onto an existing plain file (or a file
    onto an existing directory) is refused before anything is written.

    Attributes:
        source: Entry that was about to be copied or moved.
        destination: Conflicting destination path.
    """

    def __init__(self, source: Path, destination: Path) -> None:
        self.source = source
        self.destination = destination
        super().__init__(
            f"Cannot place {source} at {destination}: an entry of the other type is in the way"
        )
