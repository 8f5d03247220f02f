"""Turn sheet text or cells into records.

``parse_csv`` and ``rows_from_cells`` produce header → value mappings with
trimmed headers and cells.  The ``normalise_*`` functions turn the rows of
the smaller datasets into the typed records of ``analytics.records``,
recording every dropped row in the dataset's ``DatasetReport``.

Header matching is alias based: each field accepts the Arabic header used by
the municipality's sheets and a few English spellings, compared after
trimming and lower-casing.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, Mapping, Optional, Sequence

from analytics.records import (
    AdditionalCost,
    Population,
    Revenue,
    WasteTreatment,
    Worker,
    year_text,
)
from ingest.report import DatasetReport
from utils.strings import clean_amount, clean_text, safe_float

Row = dict[str, Any]

# ── Header aliases ────────────────────────────────────────────────────────────

YEAR_ALIASES = ("السنة", "year")
AREA_ALIASES = ("المنطقة", "area")

POPULATION_FIELDS = {
    "area": AREA_ALIASES,
    "year": YEAR_ALIASES,
    "population": ("عدد السكان", "population"),
    "served": ("عدد السكان المخدومين", "السكان المخدومين", "المخدومين", "served"),
}

WORKER_FIELDS = {
    "name": ("الاسم", "name"),
    "role": ("الوظيفة", "role", "job"),
    "area": AREA_ALIASES,
    "salary": ("الراتب", "salary"),
}

REVENUE_FIELDS = {
    "year": YEAR_ALIASES,
    "area": AREA_ALIASES,
    "household_fees": ("رسوم المنازل", "الرسوم المنزلية", "hhfees", "hh_fees", "household_fees"),
    "commercial_fees": ("رسوم المحلات التجارية", "الرسوم التجارية", "commercialfees",
                        "commercial_fees"),
    "recycling_revenue": ("إيرادات التدوير", "عائدات التدوير", "recyclingrevenue",
                          "recycling_revenue"),
}

TREATMENT_FIELDS = {
    "year": YEAR_ALIASES,
    "recyclables_tons": ("المواد القابلة للتدوير (طن)", "المواد القابلة للتدوير",
                         "recyclableston", "recyclables_tons"),
    "biowaste_tons": ("النفايات العضوية (طن)", "النفايات العضوية", "biowasteton",
                      "biowaste_tons"),
    "other_treatment_tons": ("معالجة أخرى (طن)", "معالجة أخرى", "othertreatmentton",
                             "other_treatment_tons"),
}

ADDITIONAL_COST_FIELDS = {
    "year": YEAR_ALIASES,
    "insurance": ("التأمين", "insurance"),
    "clothing": ("الملابس", "clothing"),
    "cleaning": ("مواد التنظيف", "النظافة", "cleaning"),
    "containers": ("الحاويات", "containers"),
}


def _key(header: Any) -> str:
    return clean_text(header).lower()


def resolve_columns(headers: Iterable[str], fields: Mapping[str, Sequence[str]]) -> dict[str, str]:
    """Map each logical field to the first header that matches one of its aliases."""
    by_key = {}
    for h in headers:
        by_key.setdefault(_key(h), h)
    mapping = {}
    for field_name, aliases in fields.items():
        for alias in aliases:
            header = by_key.get(_key(alias))
            if header is not None:
                mapping[field_name] = header
                break
    return mapping


# ── Tabular parsing ───────────────────────────────────────────────────────────


def _is_blank(row: Mapping[str, Any]) -> bool:
    return all(v is None or clean_text(v) == "" for v in row.values())


def rows_from_cells(cell_rows: Iterable[Sequence[Any]],
                    report: Optional[DatasetReport] = None) -> list[Row]:
    """Build header-keyed rows from a header row followed by data rows.

    Text cells are trimmed; numbers and dates are kept as-is.  Columns with a
    blank header are dropped, fully blank rows are skipped.
    """
    it = iter(cell_rows)
    header_cells = next(it, None)
    if header_cells is None:
        return []
    headers = [clean_text(h) for h in header_cells]

    rows: list[Row] = []
    for line_no, cells in enumerate(it, start=2):
        row: Row = {}
        for i, h in enumerate(headers):
            if not h:
                continue
            value = cells[i] if i < len(cells) else None
            if isinstance(value, str):
                value = value.strip()
            row[h] = "" if value is None else value
        if _is_blank(row):
            if report is not None:
                report.add_skip("empty_row", "all cells blank", item=str(line_no))
            continue
        rows.append(row)
    return rows


def parse_csv(text: str, report: Optional[DatasetReport] = None) -> list[Row]:
    """Parse CSV text (quoted fields allowed) into header-keyed rows."""
    text = text.lstrip("\ufeff")
    if not text.strip():
        return []
    reader = csv.reader(io.StringIO(text, newline=""))
    return rows_from_cells(reader, report)


# ── Normalisers ───────────────────────────────────────────────────────────────


def _get(row: Mapping[str, Any], cols: Mapping[str, str], name: str) -> Any:
    header = cols.get(name)
    return row.get(header) if header is not None else None


def normalise_workers(rows: Sequence[Row], report: Optional[DatasetReport] = None) -> list[Worker]:
    """Workers with annual salaries, one per name.

    The sheet holds monthly salaries as free text; non-numeric characters are
    stripped and the amount is annualised (× 12).  Rows without a name or a
    role, and rows repeating the header, are skipped.  A name seen twice keeps
    its highest salary.
    """
    if not rows:
        return []
    cols = resolve_columns(rows[0].keys(), WORKER_FIELDS)
    name_header = cols.get("name", "")
    by_name: dict[str, Worker] = {}
    for i, row in enumerate(rows, start=2):
        name = clean_text(_get(row, cols, "name"))
        role = clean_text(_get(row, cols, "role"))
        if name and name == name_header:
            if report is not None:
                report.add_skip("header_row", "repeated header", item=str(i))
            continue
        if not name or not role:
            if report is not None:
                report.add_skip("missing_key", "worker without name or role", item=str(i))
            continue
        salary = clean_amount(_get(row, cols, "salary")) * 12
        existing = by_name.get(name)
        if existing is not None:
            if report is not None:
                report.add_skip("duplicate", "duplicate worker name", item=name)
            if salary <= existing.salary:
                continue
        by_name[name] = Worker(
            name=name,
            role=role,
            area=clean_text(_get(row, cols, "area")),
            salary=salary,
        )
    return list(by_name.values())


def normalise_population(rows: Sequence[Row], report: Optional[DatasetReport] = None) -> list[Population]:
    """Population per (area, year); rows without an area are skipped."""
    if not rows:
        return []
    cols = resolve_columns(rows[0].keys(), POPULATION_FIELDS)
    out = []
    for i, row in enumerate(rows, start=2):
        area = clean_text(_get(row, cols, "area"))
        if not area:
            if report is not None:
                report.add_skip("missing_key", "population row without area", item=str(i))
            continue
        out.append(Population(
            area=area,
            year=year_text(_get(row, cols, "year")),
            population=safe_float(_get(row, cols, "population")),
            served=safe_float(_get(row, cols, "served")),
        ))
    return out


def normalise_revenues(rows: Sequence[Row], report: Optional[DatasetReport] = None) -> list[Revenue]:
    """Revenue rows; rows without a year are skipped."""
    if not rows:
        return []
    cols = resolve_columns(rows[0].keys(), REVENUE_FIELDS)
    out = []
    for i, row in enumerate(rows, start=2):
        year = year_text(_get(row, cols, "year"))
        if not year:
            if report is not None:
                report.add_skip("missing_key", "revenue row without year", item=str(i))
            continue
        out.append(Revenue(
            year=year,
            area=clean_text(_get(row, cols, "area")),
            household_fees=safe_float(_get(row, cols, "household_fees")),
            commercial_fees=safe_float(_get(row, cols, "commercial_fees")),
            recycling_revenue=safe_float(_get(row, cols, "recycling_revenue")),
        ))
    return out


def normalise_treatment(rows: Sequence[Row], report: Optional[DatasetReport] = None) -> list[WasteTreatment]:
    if not rows:
        return []
    cols = resolve_columns(rows[0].keys(), TREATMENT_FIELDS)
    out = []
    for i, row in enumerate(rows, start=2):
        year = year_text(_get(row, cols, "year"))
        if not year:
            if report is not None:
                report.add_skip("missing_key", "treatment row without year", item=str(i))
            continue
        out.append(WasteTreatment(
            year=year,
            recyclables_tons=safe_float(_get(row, cols, "recyclables_tons")),
            biowaste_tons=safe_float(_get(row, cols, "biowaste_tons")),
            other_treatment_tons=safe_float(_get(row, cols, "other_treatment_tons")),
        ))
    return out


def normalise_additional_costs(rows: Sequence[Row],
                               report: Optional[DatasetReport] = None) -> list[AdditionalCost]:
    if not rows:
        return []
    cols = resolve_columns(rows[0].keys(), ADDITIONAL_COST_FIELDS)
    out = []
    for i, row in enumerate(rows, start=2):
        year = year_text(_get(row, cols, "year"))
        if not year:
            if report is not None:
                report.add_skip("missing_key", "cost row without year", item=str(i))
            continue
        out.append(AdditionalCost(
            year=year,
            insurance=safe_float(_get(row, cols, "insurance")),
            clothing=safe_float(_get(row, cols, "clothing")),
            cleaning=safe_float(_get(row, cols, "cleaning")),
            containers=safe_float(_get(row, cols, "containers")),
        ))
    return out


NORMALISERS = {
    "workers": normalise_workers,
    "population": normalise_population,
    "revenues": normalise_revenues,
    "treatment": normalise_treatment,
    "additional_costs": normalise_additional_costs,
}
