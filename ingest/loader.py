"""Load every dataset into a ``RecordStore``.

Three kinds of source are supported:

- ``"remote"``: the published Google Sheets CSV exports, fetched in parallel
  through one pooled ``requests`` session with retries.
- a directory holding ``<dataset>.csv`` files.
- an ``.xlsx`` workbook with one sheet per dataset, read with openpyxl.

A dataset that cannot be read is logged and recorded as failed (or missing)
in the ``LoadReport``; it loads as empty and the rest of the load continues.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional

import openpyxl
import requests

from analytics.store import DATASETS, RecordStore
from ingest.parsing import NORMALISERS, parse_csv, rows_from_cells
from ingest.report import DatasetReport, LoadReport
from ingest.sources import PUBLISHED_URLS
from utils.common import elapsed
from utils.http import SessionManager, fetch_text

logger = logging.getLogger(__name__)

REMOTE = "remote"


class DataSourceError(ValueError):
    """The configured data source does not exist or has an unsupported type."""


def _finish(name: str, rows: list, report: DatasetReport) -> list:
    """Normalise *rows* if the dataset needs it and record the outcome."""
    normalise = NORMALISERS.get(name)
    records = normalise(rows, report) if normalise else rows
    report.rows_loaded = len(records)
    report.status = "loaded"
    return records


def _load_dataset(name: str, read_rows: Callable[[DatasetReport], list],
                  report: DatasetReport) -> list:
    t0 = time.monotonic()
    try:
        records = _finish(name, read_rows(report), report)
    except FileNotFoundError as exc:
        report.status = "missing"
        report.add_error(str(exc))
        logger.warning("Dataset %s not found: %s", name, exc)
        records = []
    except (requests.RequestException, OSError, ValueError, KeyError) as exc:
        report.status = "failed"
        report.add_error(f"{type(exc).__name__}: {exc}")
        logger.error("Failed to load dataset %s from %s: %s", name, report.source, exc)
        records = []
    report.elapsed_seconds = time.monotonic() - t0
    logger.info("  %s", report.console_summary())
    return records


# ── Source readers ────────────────────────────────────────────────────────────


def _load_remote(report: LoadReport, timeout: float,
                 session_manager: Optional[SessionManager]) -> dict[str, list]:
    results: dict[str, list] = {}
    sm = session_manager or SessionManager()
    try:
        session = sm.session

        for name in DATASETS:
            report.dataset(name, PUBLISHED_URLS[name])

        def read(name: str) -> list:
            url = PUBLISHED_URLS[name]
            rpt = report.datasets[name]
            return _load_dataset(
                name, lambda r: parse_csv(fetch_text(url, session, timeout), r), rpt)

        with ThreadPoolExecutor(max_workers=len(DATASETS),
                                thread_name_prefix="sheet-fetch") as pool:
            futures = {pool.submit(read, name): name for name in DATASETS}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
    finally:
        if session_manager is None:
            sm.close()
    return results


def _load_directory(directory: Path, report: LoadReport) -> dict[str, list]:
    results: dict[str, list] = {}
    for name in DATASETS:
        path = directory / f"{name}.csv"
        rpt = report.dataset(name, str(path))

        def read(r: DatasetReport, path: Path = path) -> list:
            return parse_csv(path.read_text(encoding="utf-8-sig"), r)

        results[name] = _load_dataset(name, read, rpt)
    return results


def _load_workbook(path: Path, report: LoadReport) -> dict[str, list]:
    results: dict[str, list] = {}
    wb = openpyxl.load_workbook(str(path), read_only=True, data_only=True)
    try:
        sheets = {s.strip().lower(): s for s in wb.sheetnames}
        for name in DATASETS:
            rpt = report.dataset(name, f"{path}#{name}")

            def read(r: DatasetReport, name: str = name) -> list:
                sheet = sheets.get(name)
                if sheet is None:
                    raise FileNotFoundError(f"no sheet named '{name}' in {path.name}")
                return rows_from_cells(wb[sheet].iter_rows(values_only=True), r)

            results[name] = _load_dataset(name, read, rpt)
    finally:
        wb.close()
    return results


# ── Entry point ───────────────────────────────────────────────────────────────


def load_store(source: str = REMOTE, timeout: float = 30.0,
               session_manager: Optional[SessionManager] = None
               ) -> tuple[RecordStore, LoadReport]:
    """Load all datasets from *source* and return the store with its report.

    Raises:
        DataSourceError: if *source* is neither ``"remote"``, an existing
            directory, nor an existing ``.xlsx`` file.
    """
    report = LoadReport(source=source)
    t0 = time.monotonic()
    started = time.time()
    logger.info("Loading datasets from %s", source)

    if source == REMOTE:
        datasets = _load_remote(report, timeout, session_manager)
    else:
        path = Path(source).expanduser()
        if path.is_dir():
            datasets = _load_directory(path, report)
        elif path.is_file() and path.suffix.lower() == ".xlsx":
            datasets = _load_workbook(path, report)
        else:
            raise DataSourceError(
                f"Data source must be '{REMOTE}', a directory of CSV files "
                f"or an .xlsx workbook: {source}"
            )

    # Keep report order stable regardless of fetch completion order
    report.datasets = {n: report.datasets[n] for n in DATASETS if n in report.datasets}
    report.elapsed_seconds = time.monotonic() - t0
    store = RecordStore.build(source=source, **datasets)
    logger.info("Load complete in %s: %s", elapsed(started), report.console_summary())
    return store, report
