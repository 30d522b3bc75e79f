"""Registry of files already dispatched during this process lifetime."""

from collections import Counter

from rayosx_agent.models import FileState, WatchedFile


class FileTracker:
    """Maps filenames to the file being processed and its pipeline state.

    A filename is registered once, when the scanner dispatches it, and is
    never removed: membership means "attempted", so a failed or rejected file
    is not dispatched again until the process restarts.
    """

    def __init__(self) -> None:
        self._files: dict[str, WatchedFile] = {}

    def __contains__(self, filename: object) -> bool:
        return filename in self._files

    def __len__(self) -> int:
        return len(self._files)

    def register(self, watched: WatchedFile) -> bool:
        """Track a newly discovered file.

        Returns:
            False if a file with that name was already tracked
        """
        if watched.filename in self._files:
            return False
        self._files[watched.filename] = watched
        return True

    def get(self, filename: str) -> WatchedFile | None:
        return self._files.get(filename)

    def set_state(self, filename: str, state: FileState) -> None:
        self._files[filename].state = state

    def counts(self) -> dict[FileState, int]:
        """Number of tracked files per state."""
        counter = Counter(watched.state for watched in self._files.values())
        return {state: counter.get(state, 0) for state in FileState}

    @property
    def in_flight(self) -> int:
        """Files whose pipeline has not reached a terminal state."""
        return sum(1 for watched in self._files.values() if not watched.state.is_terminal)
