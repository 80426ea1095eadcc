"""
Database loading for the dump ingest pipeline.

Each table is disposable: it is dropped, recreated from its model, and filled
with the transformed records in fixed-size batches. Every batch is committed
on its own, so a failing batch leaves the earlier ones in place.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Type, Union

from sqlalchemy import insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from src import settings
from src.db import DatabaseManager
from src.etl.transform import read_customers, read_organizations
from src.etl.utils import PersistenceError
from src.models import Base, Customer, Organization

# Configure logger
logger = logging.getLogger("dumpingest.load")


def batched(rows: Iterable[Dict[str, Any]], size: int) -> Iterator[List[Dict[str, Any]]]:
    """Split rows into lists of at most `size` items, preserving order."""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    batch: List[Dict[str, Any]] = []
    for row in rows:
        batch.append(row)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


def recreate_table(engine: Engine, model: Type[Base]) -> None:
    """Drop a table if it exists and create it again from its model.

    Raises:
        PersistenceError: If the schema statements fail
    """
    table = model.__table__
    try:
        table.drop(engine, checkfirst=True)
        table.create(engine)
    except SQLAlchemyError as e:
        logger.error(f"Failed to recreate table {table.name}: {str(e)}")
        raise PersistenceError(f"Failed to recreate table {table.name}: {str(e)}") from e
    logger.info(f"Recreated table {table.name}")


def batch_insert(
    engine: Engine,
    model: Type[Base],
    records: Iterable[Any],
    batch_size: int = settings.BATCH_SIZE,
) -> int:
    """Insert records into a table in batches.

    Args:
        engine: Engine bound to the target database
        model: Model of the target table
        records: Records exposing `to_row()`, inserted in iteration order
        batch_size: Number of rows per INSERT statement

    Returns:
        Number of rows inserted

    Raises:
        PersistenceError: If a batch is rejected by the database
    """
    table = model.__table__
    inserted = 0
    for batch in batched((record.to_row() for record in records), batch_size):
        try:
            with engine.begin() as conn:
                conn.execute(insert(table), batch)
        except SQLAlchemyError as e:
            logger.error(f"Insert into {table.name} failed after {inserted} rows: {str(e)}")
            raise PersistenceError(f"Failed to insert into {table.name}: {str(e)}") from e
        inserted += len(batch)
        logger.debug(f"Inserted {inserted} rows into {table.name}")
    return inserted


def load_records(
    engine: Engine,
    model: Type[Base],
    records: Sequence[Any],
    batch_size: int = settings.BATCH_SIZE,
) -> int:
    """Recreate a table and fill it with records."""
    recreate_table(engine, model)
    return batch_insert(engine, model, records, batch_size=batch_size)


def process_csv_files(
    directory: Union[str, Path],
    db_path: Optional[Union[str, Path]] = None,
    batch_size: int = settings.BATCH_SIZE,
    db_manager: Optional[DatabaseManager] = None,
) -> Dict[str, int]:
    """Parse both CSV files and load them into the database.

    Organizations are fully loaded before customers are parsed.

    Args:
        directory: Directory holding organizations.csv and customers.csv
        db_path: SQLite database file. Defaults to settings.SQLITE_DB_PATH.
        batch_size: Number of rows per INSERT statement
        db_manager: Database manager to use instead of opening `db_path`

    Returns:
        Number of rows loaded per table

    Raises:
        ParsingError: If a CSV file cannot be parsed
        PersistenceError: If a table cannot be created or loaded
    """
    owns_manager = db_manager is None
    if db_manager is None:
        db_manager = DatabaseManager(db_path)

    counts: Dict[str, int] = {}
    try:
        logger.info("Processing organizations CSV")
        organizations = read_organizations(directory)
        counts[Organization.__tablename__] = load_records(
            db_manager.engine, Organization, organizations, batch_size=batch_size
        )
        logger.info("Organizations processing completed!")

        logger.info("Processing customers CSV")
        customers = read_customers(directory)
        counts[Customer.__tablename__] = load_records(
            db_manager.engine, Customer, customers, batch_size=batch_size
        )
        logger.info("Customers processing completed!")
    finally:
        if owns_manager:
            db_manager.close()

    return counts
