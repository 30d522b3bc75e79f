"""Move uploaded files into the processed folder."""

from pathlib import Path

from rayosx_agent.exceptions import ArchiveError
from rayosx_agent.utils.logger import logger


def processed_dir(path: Path, dir_name: str = "procesados") -> Path:
    """Processed folder that belongs to the folder holding ``path``."""
    return path.parent / dir_name


def move_to_processed(path: Path, dir_name: str = "procesados") -> Path:
    """Rename a file into the processed folder next to it.

    The folder is created if needed. An existing file with the same name is
    never overwritten, and the source is never deleted: on any failure it
    stays where it was.

    Args:
        path: File to move
        dir_name: Name of the processed folder

    Returns:
        New location of the file

    Raises:
        ArchiveError: If the folder cannot be created or the rename fails
    """
    target_dir = processed_dir(path, dir_name)
    destination = target_dir / path.name

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveError(f"Cannot create {target_dir}: {e}") from e

    if destination.exists():
        raise ArchiveError(f"{destination} already exists")

    try:
        path.rename(destination)
    except OSError as e:
        raise ArchiveError(f"Cannot move {path.name}: {e}") from e

    logger.info(f"Moved to: {destination}")
    return destination
