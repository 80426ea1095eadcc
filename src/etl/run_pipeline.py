"""
Dump ingest pipeline runner.

Downloads the data dump, extracts it into the working directory and loads the
CSV files it contains into the SQLite database. Stages run strictly one after
another; the first failure stops the run.
"""

import asyncio
import logging
import sys
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from src.etl.load import process_csv_files
from src.etl.utils import download_file, extract_tar_gz
from src.settings import PipelineConfig

# Configure logger
logger = logging.getLogger("dumpingest.pipeline")


class Stage(str, Enum):
    """Pipeline stages, in execution order."""
    IDLE = "idle"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    LOADING = "loading"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""
    stage: Stage = Stage.IDLE
    failed_stage: Optional[Stage] = None
    error: Optional[BaseException] = None
    counts: Dict[str, int] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.stage is Stage.DONE

    def get_elapsed_time(self) -> float:
        """Get elapsed time in seconds."""
        return (self.end_time or time.time()) - self.start_time

    def get_stats(self) -> Dict[str, Any]:
        """Get pipeline statistics.

        Returns:
            Dictionary of statistics
        """
        return {
            "status": self.stage.value,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error": str(self.error) if self.error else None,
            "counts": dict(self.counts),
            "elapsed_time": self.get_elapsed_time(),
        }


async def process_data_dump(
    config: Optional[PipelineConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> PipelineResult:
    """Run the full download, extract and load pipeline.

    Errors from any stage are logged and recorded on the result instead of
    being raised.

    Args:
        config: Pipeline configuration. Defaults to PipelineConfig.from_settings().
        client: HTTP client used for the download

    Returns:
        Result describing the last stage reached and the rows loaded
    """
    config = config or PipelineConfig.from_settings()
    result = PipelineResult()

    try:
        config.tmp_dir.mkdir(parents=True, exist_ok=True)

        result.stage = Stage.DOWNLOADING
        logger.info("Downloading dump file...")
        await download_file(config.download_url, config.archive_path, client=client)

        result.stage = Stage.EXTRACTING
        logger.info("Extracting dump file...")
        await asyncio.to_thread(extract_tar_gz, config.archive_path, config.tmp_dir)

        result.stage = Stage.LOADING
        logger.info("Processing CSV files...")
        result.counts = await asyncio.to_thread(
            process_csv_files, config.tmp_dir, config.db_path, config.batch_size
        )

        result.stage = Stage.DONE
        logger.info("✅ Data processing completed!")
    except Exception as e:
        logger.exception(f"❌ Error processing data during {result.stage.value}: {e}")
        result.failed_stage = result.stage
        result.stage = Stage.FAILED
        result.error = e
    finally:
        result.end_time = time.time()

    return result


async def run(config: Optional[PipelineConfig] = None) -> int:
    """Run the pipeline and translate its result into an exit code."""
    result = await process_data_dump(config)
    logger.info(f"Pipeline finished: {result.get_stats()}")
    return 0 if result.succeeded else 1


def main() -> None:
    """Main entry point for the dump ingest pipeline."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
