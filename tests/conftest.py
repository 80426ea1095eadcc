"""
Test fixtures for the dump ingest pipeline.

This module provides pytest fixtures for testing the dump ingest application:
sample CSV data, a packed dump archive, an HTTP client serving that archive,
and a throwaway SQLite database.
"""

import csv
import io
import tarfile
from pathlib import Path
from typing import AsyncIterator, Callable, Dict, Generator, List, Optional, Sequence

import httpx
import pytest

from src.db import DatabaseManager
from src.etl.transform import CUSTOMER_COLUMNS, ORGANIZATION_COLUMNS
from src.settings import PipelineConfig


TEST_URL = "https://example.com/dump.tar.gz"


def write_csv(path: Path, header: Sequence[str], rows: Sequence[Sequence[str]]) -> Path:
    """Write a CSV file with a header row."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return path


def build_dump(files: Dict[str, bytes], top_level: str = "dump") -> bytes:
    """Pack files into an in-memory .tar.gz below a single top-level folder."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        folder = tarfile.TarInfo(top_level)
        folder.type = tarfile.DIRTYPE
        folder.mode = 0o755
        tar.addfile(folder)
        for name, content in files.items():
            info = tarfile.TarInfo(f"{top_level}/{name}")
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class ChunkedStream(httpx.AsyncByteStream):
    """Response body yielding fixed chunks, optionally failing after the first."""

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for index, chunk in enumerate(self.chunks):
            if self.error is not None and index == 1:
                raise self.error
            yield chunk


@pytest.fixture
def organization_rows() -> List[List[str]]:
    """Three organizations.csv data rows."""
    return [
        ["FAB0d41d5b5d22c", "Ferrell LLC", "https://price.net/", "Papua New Guinea",
         "Horizontal empowering knowledgebase", "1990", "Plastics", "3498"],
        ["6A7EdDEA9FaDC52", "Mckinney, Riley and Day", "http://www.hall-buchanan.info/", "Finland",
         "User-centric system-worthy leverage", "2015", "Glass / Ceramics / Concrete", "4952"],
        ["0bFED1ADAE4bcC1", "Hester Ltd", "http://sullivan-reed.com/", "China",
         "Switchable scalable moratorium", "1971", "Public Safety", "5287"],
    ]


@pytest.fixture
def customer_rows() -> List[List[str]]:
    """Two customers.csv data rows."""
    return [
        ["DD37Cf93aecA6Dc", "Sheryl", "Baxter", "Rasmussen Group", "East Leonard", "Chile",
         "229.077.5154", "397.884.0519x718", "zunigavanessa@smith.info", "24-08-2020",
         "http://www.stephenson.com/"],
        ["1Ef7b82A4CAAD10", "Preston", "Lozano", "Vega-Gentry", "East Jimmychester", "Djibouti",
         "5153435776", "686-620-1820x944", "vmata@colon.com", "23-04-2021",
         "http://www.hobbs.com/"],
    ]


@pytest.fixture
def csv_dir(tmp_path: Path, organization_rows, customer_rows) -> Path:
    """Directory containing valid organizations.csv and customers.csv."""
    directory = tmp_path / "csv"
    directory.mkdir()
    write_csv(directory / "organizations.csv", ORGANIZATION_COLUMNS, organization_rows)
    write_csv(directory / "customers.csv", CUSTOMER_COLUMNS, customer_rows)
    return directory


@pytest.fixture
def dump_archive(csv_dir: Path) -> bytes:
    """Gzipped tarball of the sample CSV files below a top-level folder."""
    return build_dump({
        "organizations.csv": (csv_dir / "organizations.csv").read_bytes(),
        "customers.csv": (csv_dir / "customers.csv").read_bytes(),
    })


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for HTTP clients answering every request with a fixed body.

    The body is served as a stream in `chunk_size` pieces, so the client sees
    it exactly as it would arrive over the network.
    """
    def factory(
        body: bytes,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        content_length: bool = True,
        chunk_size: int = 1024,
        error: Optional[Exception] = None,
    ) -> httpx.AsyncClient:
        requests: List[httpx.Request] = []
        response_headers = dict(headers or {})
        if content_length:
            response_headers["Content-Length"] = str(len(body))
        chunks = [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)]

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                status_code, headers=response_headers, stream=ChunkedStream(chunks, error)
            )

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client.requests = requests
        return client

    return factory


@pytest.fixture
def db_manager(tmp_path: Path) -> Generator[DatabaseManager, None, None]:
    """Database manager bound to a fresh SQLite file."""
    manager = DatabaseManager(tmp_path / "out" / "database.sqlite")
    yield manager
    manager.close()


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    """Pipeline configuration pointing into the test directory."""
    return PipelineConfig(
        download_url=TEST_URL,
        db_path=tmp_path / "out" / "database.sqlite",
        tmp_dir=tmp_path / "tmp",
        batch_size=100,
    )
