"""
Configuration settings for the dump ingest application.

This module loads environment variables and provides configuration settings
for the application.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Source archive
DUMP_DOWNLOAD_URL = os.getenv(
    "DUMP_DOWNLOAD_URL",
    "https://fiber-challenges.s3.amazonaws.com/dump.tar.gz",
)

# Database settings
SQLITE_DB_PATH = Path(os.getenv("SQLITE_DB_PATH", "out/database.sqlite"))

# ETL settings
TMP_DIR = Path(os.getenv("TMP_DIR", "tmp"))
DUMP_FILENAME = "dump.tar.gz"
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "100"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class PipelineConfig:
    """Explicit configuration handed to the pipeline at start-up."""

    download_url: str
    db_path: Path
    tmp_dir: Path = Path("tmp")
    batch_size: int = 100

    @property
    def archive_path(self) -> Path:
        """Path the downloaded archive is written to."""
        return self.tmp_dir / DUMP_FILENAME

    @classmethod
    def from_settings(cls) -> "PipelineConfig":
        """Build a configuration from the module-level settings."""
        return cls(
            download_url=DUMP_DOWNLOAD_URL,
            db_path=SQLITE_DB_PATH,
            tmp_dir=TMP_DIR,
            batch_size=BATCH_SIZE,
        )
