"""
Catalog CSV parser and exporter.

Reads the store's product export (one row per variant, header row naming
the fields) into CatalogRows and writes the catalog back in the same
format for re-import.

Parsing rules:
    - Header row defines field names, in order, kept verbatim (blank
      names stay blank; a repeated name keeps its last column's value)
    - Blank lines are skipped
    - Rows with fewer fields are padded with ""
    - Rows with extra fields are cut to the header
    - Every value is kept as text (barcodes keep leading zeros)
"""

import csv
from io import StringIO
from pathlib import Path
from typing import Iterable, Union

import pandas as pd
import structlog

from exceptions import CatalogParseError
from models.catalog import CatalogRow

logger = structlog.get_logger(__name__)

EXPORT_FILENAME = "products_with_upc_updated.csv"


def _decode(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CatalogParseError(
                "File is not valid UTF-8 text",
                details={"position": e.start}
            )
    return content.lstrip("\ufeff")


def _read_header(text: str) -> list[str]:
    """First non-blank record of the file, read with the csv module so names are not rewritten."""
    for record in csv.reader(StringIO(text)):
        if record:
            return record
    return []


def parse_catalog_csv(content: Union[str, bytes]) -> list[CatalogRow]:
    """
    Parse product export CSV text.

    Args:
        content: CSV text or raw upload bytes

    Returns:
        Catalog rows in file order

    Raises:
        CatalogParseError: If the file has no header row
    """
    text = _decode(content)
    logger.info("parsing_catalog_csv", length=len(text))

    if not text.strip():
        raise CatalogParseError("File is empty; expected a header row")

    try:
        header = _read_header(text)
    except csv.Error as e:
        logger.warning("catalog_csv_parse_failed", error=str(e))
        raise CatalogParseError(
            "Could not parse catalog CSV",
            details={"error": str(e)}
        )

    if not header:
        raise CatalogParseError("File is empty; expected a header row")

    # Columns are read by position; pandas would rename blank and repeated names
    width = len(header)
    try:
        df = pd.read_csv(
            StringIO(text),
            header=0,
            names=list(range(width)),
            dtype=str,
            na_filter=False,
            skip_blank_lines=True,
            index_col=False,
            usecols=list(range(width)),  # extra trailing fields are dropped
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        logger.warning("catalog_csv_parse_failed", error=str(e))
        raise CatalogParseError(
            "Could not parse catalog CSV",
            details={"error": str(e)}
        )

    df = df.fillna("")

    rows = [
        CatalogRow(dict(zip(header, values)))
        for values in df.itertuples(index=False, name=None)
    ]

    logger.info(
        "catalog_csv_parsed",
        rows=len(rows),
        columns=width
    )

    return rows


def load_catalog_file(path: Union[str, Path]) -> list[CatalogRow]:
    """Read and parse a catalog CSV from disk."""
    return parse_catalog_csv(Path(path).read_bytes())


def collect_columns(rows: Iterable[CatalogRow]) -> list[str]:
    """
    Union of field names across rows, in first-seen order.

    Rows from one import share a header, so this is normally just the
    header of the original file.
    """
    seen: dict[str, None] = {}
    for row in rows:
        for field in row.fields:
            seen.setdefault(field, None)
    return list(seen)


def export_catalog_csv(rows: list[CatalogRow]) -> str:
    """
    Serialize rows back to the product export format.

    Args:
        rows: Catalog rows (one line per variant)

    Returns:
        CSV text with a header row; empty string for an empty catalog
    """
    if not rows:
        return ""

    columns = collect_columns(rows)
    df = pd.DataFrame(
        [row.to_record() for row in rows],
        columns=columns,
    ).fillna("")

    logger.info("exporting_catalog_csv", rows=len(rows), columns=len(columns))

    return df.to_csv(index=False, lineterminator="\n")
