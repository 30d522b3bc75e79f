"""Debounce newly detected files until the modality has finished writing them."""

import asyncio
from pathlib import Path

from rayosx_agent.utils.logger import logger


async def wait_until_stable(path: Path, delay: float = 2.0) -> bool:
    """Wait ``delay`` seconds, then check that the file is still there.

    This is a heuristic: no size polling or checksum is done, the delay is
    simply assumed to be long enough for the device to finish writing.

    Args:
        path: File to wait for
        delay: Debounce period in seconds

    Returns:
        True if the file still exists after the delay, False if it vanished
    """
    if delay > 0:
        await asyncio.sleep(delay)

    if not path.is_file():
        logger.debug(f"File disappeared before upload: {path.name}")
        return False
    return True
