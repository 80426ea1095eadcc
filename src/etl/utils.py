"""
Utility functions for ETL processes.

This module provides the shared pieces of the dump ingest pipeline: logging
configuration, the ETL exception hierarchy, the archive download with progress
reporting, and the tarball extraction.
"""

import copy
import logging
import tarfile
import zlib
from pathlib import Path
from typing import Callable, Dict, Optional, Union

import httpx
from rich.console import Console
from rich.logging import RichHandler

from src import settings

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger("dumpingest.etl")

console = Console()

# Request headers for the dump download
DOWNLOAD_HEADERS: Dict[str, str] = {"Accept-Encoding": "gzip, deflate"}

ProgressCallback = Callable[[Optional[float], int, int], None]
PathLike = Union[str, Path]


class ETLError(Exception):
    """Base exception for ETL-related errors."""
    pass


class DownloadError(ETLError):
    """Exception raised when a download fails."""
    pass


class ExtractionError(ETLError):
    """Exception raised when an archive cannot be decompressed or unpacked."""
    pass


class ParsingError(ETLError):
    """Exception raised when a CSV file cannot be parsed into records."""
    pass


class PersistenceError(ETLError):
    """Exception raised when a table cannot be created or loaded."""
    pass


def calculate_progress(received: int, total: int) -> Optional[float]:
    """Calculate download progress as a percentage.

    Args:
        received: Bytes received so far
        total: Declared content length in bytes

    Returns:
        Percentage rounded to two decimals, or None when the total is unknown
    """
    if total <= 0:
        return None
    return round(received / total * 100, 2)


def print_progress(percent: Optional[float], received: int, total: int) -> None:
    """Default progress reporter, rewriting a single console line."""
    if percent is None:
        console.print(f"Downloading... {received} bytes", end="\r")
    else:
        console.print(f"Downloading... {percent:.2f}%", end="\r")


async def download_file(
    url: str,
    destination: PathLike,
    client: Optional[httpx.AsyncClient] = None,
    on_progress: Optional[ProgressCallback] = print_progress,
) -> Path:
    """Download a file from a URL, streaming it to disk.

    The request asks for gzip/deflate transfer encoding. Bytes are written as
    received, without decoding any Content-Encoding, so progress counts the
    same bytes the declared Content-Length does.

    Args:
        url: URL to download
        destination: File to create or overwrite
        client: HTTP client to use. A client without timeout is created if omitted.
        on_progress: Called with (percent, received, total) after every chunk

    Returns:
        Path to the downloaded file

    Raises:
        DownloadError: If the request fails, returns an error status, or the
            file cannot be written
    """
    destination = Path(destination)
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=None, follow_redirects=True)

    logger.info(f"Downloading: {url}")
    try:
        async with client.stream("GET", url, headers=DOWNLOAD_HEADERS) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length") or 0)

            received = 0
            with open(destination, "wb") as f:
                async for chunk in response.aiter_raw():
                    f.write(chunk)
                    received += len(chunk)
                    if on_progress is not None:
                        on_progress(calculate_progress(received, total), received, total)

        if on_progress is not None:
            console.print()
        logger.info(f"Saved {destination} ({destination.stat().st_size} bytes)")
        return destination

    except (httpx.HTTPError, httpx.StreamError, OSError) as e:
        logger.error(f"Download error: {str(e)}")
        destination.unlink(missing_ok=True)
        raise DownloadError(f"Failed to download {url}: {str(e)}") from e
    finally:
        if owns_client:
            await client.aclose()


def _strip_first_component(name: str) -> str:
    """Drop the first path segment of an archive member name."""
    return "/".join(name.lstrip("/").split("/")[1:])


def extract_tar_gz(source: PathLike, destination: PathLike) -> int:
    """Extract a gzipped tar file, flattening its top-level folder.

    Args:
        source: Path to the .tar.gz file
        destination: Existing directory to extract into

    Returns:
        Number of archive entries written

    Raises:
        ExtractionError: If the destination is missing or the archive is unreadable
    """
    destination = Path(destination)
    if not destination.is_dir():
        raise ExtractionError(f"Extraction directory does not exist: {destination}")

    count = 0
    try:
        with tarfile.open(source, mode="r:gz") as tar:
            for member in tar:
                stripped = _strip_first_component(member.name)
                if not stripped:
                    continue

                member = copy.copy(member)
                member.name = stripped
                if member.islnk():
                    member.linkname = _strip_first_component(member.linkname)

                tar.extract(member, path=destination, filter="data")
                count += 1
    except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
        logger.error(f"Extraction error: {str(e)}")
        raise ExtractionError(f"Failed to extract {source}: {str(e)}") from e

    logger.info(f"Extracted {count} entries into {destination}")
    return count
