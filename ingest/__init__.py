"""
Ingest package -- loads the municipality's sheets into a ``RecordStore``.

Re-exports the entry points so callers can do::

    from ingest import load_store

    store, report = load_store("remote")
"""

from ingest.loader import REMOTE, DataSourceError, load_store
from ingest.report import DatasetReport, LoadReport, SkipRecord
from ingest.sources import PUBLISHED_URLS, published_csv_url

__all__ = [
    "REMOTE",
    "DataSourceError",
    "load_store",
    "DatasetReport",
    "LoadReport",
    "SkipRecord",
    "PUBLISHED_URLS",
    "published_csv_url",
]
