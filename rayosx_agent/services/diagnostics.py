"""Connectivity check run by ``rayosx-agent check``."""

from rayosx_agent.exceptions import UploadConnectionError
from rayosx_agent.services.upload import UploadClient
from rayosx_agent.settings import Settings
from rayosx_agent.utils.logger import logger


def count_matching_files(settings: Settings) -> int | None:
    """Count files in the watched folder with an allowed extension.

    Returns:
        Number of matching files, or None if the folder does not exist
    """
    watch_dir = settings.watch_dir
    if not watch_dir.is_dir():
        return None
    return sum(1 for entry in watch_dir.iterdir() if entry.is_file() and settings.is_allowed(entry.name))


async def check_connection(settings: Settings, client: UploadClient | None = None) -> bool:
    """Report the configuration and probe the server status endpoint.

    Any HTTP answer counts as reachable; the body is not looked at.

    Args:
        settings: Agent settings
        client: Client to use (one is created and closed if None)

    Returns:
        True if the server answered
    """
    logger.info("TEST MODE: checking connection to the server...")
    logger.info(f"   Server:     {settings.server_url}")
    logger.info(f"   Folder:     {settings.watch_dir}")
    logger.info(f"   Extensions: {', '.join(settings.extensions)}")

    count = count_matching_files(settings)
    if count is None:
        logger.warning("   Folder does not exist yet. It will be created automatically.")
    else:
        logger.info(f"   Files found: {count}")

    owns_client = client is None
    if client is None:
        client = UploadClient(
            settings.server_url,
            upload_path=settings.upload_path,
            status_path=settings.status_path,
            timeout=settings.request_timeout,
        )

    try:
        status_code = await client.check_status()
    except UploadConnectionError as e:
        logger.error(f"Could not connect to the server: {e}")
        logger.info("   Check server_url in the configuration")
        return False
    finally:
        if owns_client:
            await client.close()

    logger.success(f"Server responded (HTTP {status_code})")
    return True
