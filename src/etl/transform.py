"""
CSV transformation for the dump ingest pipeline.

This module reads the two CSV files shipped in the dump and projects every row
onto a typed record. Values are coerced, not validated: a number that cannot
be parsed becomes None and a malformed date yields a malformed string. No row
is ever skipped; lines that are completely empty are not rows and are ignored.
"""

import csv
import logging
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar, Union

from src.etl.utils import ParsingError

# Configure logger
logger = logging.getLogger("dumpingest.transform")

ORGANIZATIONS_FILE = "organizations.csv"
CUSTOMERS_FILE = "customers.csv"

ORGANIZATION_COLUMNS = (
    "Organization Id", "Name", "Website", "Country", "Description",
    "Founded", "Industry", "Number of employees",
)
CUSTOMER_COLUMNS = (
    "Customer Id", "First Name", "Last Name", "Company", "City", "Country",
    "Phone 1", "Phone 2", "Email", "Subscription Date", "Website",
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

R = TypeVar("R")


@dataclass(frozen=True)
class OrganizationRecord:
    """One row of organizations.csv after renaming and coercion."""
    OrganizationId: Optional[str]
    Name: Optional[str]
    Website: Optional[str]
    Country: Optional[str]
    Description: Optional[str]
    Founded: Optional[int]
    Industry: Optional[str]
    NumberOfEmployees: Optional[int]

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CustomerRecord:
    """One row of customers.csv after renaming and coercion."""
    CustomerId: Optional[str]
    FirstName: Optional[str]
    LastName: Optional[str]
    Company: Optional[str]
    City: Optional[str]
    Country: Optional[str]
    Phone1: Optional[str]
    Phone2: Optional[str]
    Email: Optional[str]
    Subscription: Optional[str]
    Website: Optional[str]

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer of a string.

    Mirrors the lenient integer parsing of the source data: surrounding
    whitespace and trailing garbage are ignored.

    Args:
        value: Raw CSV value

    Returns:
        The parsed integer, or None when the value has no leading integer
    """
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    if match is None:
        return None
    return int(match.group(1))


def format_date(value: Optional[str]) -> Optional[str]:
    """Reformat a DD-MM-YYYY date as YYYY-MM-DD.

    Components are not validated. Missing components are left empty and extra
    ones are dropped, so "2020" becomes "--2020".

    Args:
        value: Date string in DD-MM-YYYY form

    Returns:
        The reassembled date string, or None if the value is missing
    """
    if value is None:
        return None
    parts = value.split("-")
    parts += [""] * (3 - len(parts))
    day, month, year = parts[:3]
    return f"{year}-{month}-{day}"


def _clean(value: Optional[str]) -> Optional[str]:
    # Blank cells are treated as missing values
    if value is None or value == "":
        return None
    return value


def map_organization(row: Mapping[str, Optional[str]]) -> OrganizationRecord:
    """Project an organizations.csv row onto an OrganizationRecord."""
    return OrganizationRecord(
        OrganizationId=_clean(row.get("Organization Id")),
        Name=_clean(row.get("Name")),
        Website=_clean(row.get("Website")),
        Country=_clean(row.get("Country")),
        Description=_clean(row.get("Description")),
        Founded=parse_int(_clean(row.get("Founded"))),
        Industry=_clean(row.get("Industry")),
        NumberOfEmployees=parse_int(_clean(row.get("Number of employees"))),
    )


def map_customer(row: Mapping[str, Optional[str]]) -> CustomerRecord:
    """Project a customers.csv row onto a CustomerRecord."""
    return CustomerRecord(
        CustomerId=_clean(row.get("Customer Id")),
        FirstName=_clean(row.get("First Name")),
        LastName=_clean(row.get("Last Name")),
        Company=_clean(row.get("Company")),
        City=_clean(row.get("City")),
        Country=_clean(row.get("Country")),
        Phone1=_clean(row.get("Phone 1")),
        Phone2=_clean(row.get("Phone 2")),
        Email=_clean(row.get("Email")),
        Subscription=format_date(_clean(row.get("Subscription Date"))),
        Website=_clean(row.get("Website")),
    )


def read_csv_records(
    path: Union[str, Path],
    required_columns: Sequence[str],
    mapper: Callable[[Mapping[str, Optional[str]]], R],
) -> List[R]:
    """Read a CSV file with a header row and map every data row to a record.

    Args:
        path: CSV file to read
        required_columns: Header names that must be present
        mapper: Builds a record from a header-keyed row

    Returns:
        Records in file order, one per data row

    Raises:
        ParsingError: If the file is missing, malformed, or lacks a required column
    """
    path = Path(path)
    records: List[R] = []
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            header = reader.fieldnames or []
            missing = [col for col in required_columns if col not in header]
            if missing:
                raise ParsingError(f"{path.name} is missing required columns: {missing}")

            for row in reader:
                records.append(mapper(row))
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise ParsingError(f"Failed to parse {path}: {str(e)}") from e

    logger.info(f"Parsed {len(records)} rows from {path.name}")
    return records


def read_organizations(directory: Union[str, Path]) -> List[OrganizationRecord]:
    """Parse organizations.csv from the extracted dump directory."""
    return read_csv_records(Path(directory) / ORGANIZATIONS_FILE, ORGANIZATION_COLUMNS, map_organization)


def read_customers(directory: Union[str, Path]) -> List[CustomerRecord]:
    """Parse customers.csv from the extracted dump directory."""
    return read_csv_records(Path(directory) / CUSTOMERS_FILE, CUSTOMER_COLUMNS, map_customer)
