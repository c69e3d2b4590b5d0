"""
Catalog file parsers module.
"""

from parsers.catalog_csv import (
    parse_catalog_csv,
    load_catalog_file,
    export_catalog_csv,
    collect_columns,
    EXPORT_FILENAME,
)

__all__ = [
    "parse_catalog_csv",
    "load_catalog_file",
    "export_catalog_csv",
    "collect_columns",
    "EXPORT_FILENAME",
]
