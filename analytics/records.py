"""Raw record shapes and field accessors.

Trips, vehicles, fuel, maintenance, area mapping and distance rows arrive as
loosely-typed mappings keyed by the Arabic column headers of the municipal
sheets.  They are kept opaque; every read goes through one of the accessor
functions below, which trim text and coerce numbers with ``safe_float`` so a
malformed cell degrades to zero instead of raising.

The smaller datasets (population, workers, revenues, treatment, additional
costs) are normalised at ingestion into the frozen dataclasses defined here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Iterator, Mapping, Optional

from utils.patterns import DAY_FIRST_DATE_PREFIX, ISO_DATE_PREFIX
from utils.strings import clean_text, safe_float, safe_int

Row = Mapping[str, Any]

# ── Column headers ────────────────────────────────────────────────────────────

VEHICLE_ID = "رقم المركبة"
NET_LOAD = "صافي التحميل"
MONTH = "الشهر"
YEAR = "السنة"
WEIGH_TIME = "تاريخ التوزين الثاني"
DRIVER = "السائق"
MANUFACTURE_YEAR = "سنة التصنيع"
CAPACITY_M3 = "سعة المركبة بالمتر المكعب"
LOAD_DENSITY = "كثافة التحميل"
MAINTENANCE_COST = "كلفة الصيانة"
AREA = "المنطقة"
DISTANCE_KM = "المسافة المقطوعة (كم)"

# Fuel sheets carry one cost column per month, in this order and spelling
MONTHS_ORDER = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "july", "aug", "sep", "oct", "nov", "dec",
)

UNSPECIFIED = "غير محدد"
UNKNOWN_VEHICLE = "غير معروف"


# ── Accessors ─────────────────────────────────────────────────────────────────


def vehicle_id(row: Row) -> str:
    return clean_text(row.get(VEHICLE_ID))


def net_load_tons(row: Row) -> float:
    """Net load converted from kilograms to metric tons."""
    return safe_float(row.get(NET_LOAD)) / 1000


def month_code(row: Row) -> str:
    return clean_text(row.get(MONTH)).lower()


def row_year(row: Row) -> str:
    """Year of a trip or reference row as text; '' when the row has none."""
    year = row.get(YEAR)
    if isinstance(year, float) and year.is_integer():
        year = int(year)
    return clean_text(year)


trip_year = row_year


def driver_name(row: Row) -> str:
    return clean_text(row.get(DRIVER))


def weigh_date(row: Row) -> Optional[date]:
    """Calendar date of the second weigh-in, or None if it cannot be read.

    Accepts datetime/date cells (Excel sources) and text timestamps that
    start with ``YYYY-MM-DD`` or ``DD/MM/YYYY``.
    """
    raw = row.get(WEIGH_TIME)
    if isinstance(raw, date):
        return raw if type(raw) is date else raw.date()
    text = clean_text(raw)
    if not text:
        return None
    m = ISO_DATE_PREFIX.match(text)
    if m:
        y, mo, d = m.groups()
    else:
        m = DAY_FIRST_DATE_PREFIX.match(text)
        if not m:
            return None
        d, mo, y = m.groups()
    try:
        return date(int(y), int(mo), int(d))
    except ValueError:
        return None


def manufacture_year(row: Row) -> Optional[int]:
    """Manufacture year, or None when missing or unparsable."""
    value = safe_float(row.get(MANUFACTURE_YEAR), default=float("nan"))
    if value != value:
        return None
    return int(value)


def capacity_m3(row: Row) -> float:
    return safe_float(row.get(CAPACITY_M3))


def load_density(row: Row) -> float:
    return safe_float(row.get(LOAD_DENSITY))


def maintenance_cost(row: Row) -> float:
    return safe_float(row.get(MAINTENANCE_COST))


def area_name(row: Row) -> str:
    return clean_text(row.get(AREA))


def distance_km(row: Row) -> float:
    return safe_float(row.get(DISTANCE_KM))


def fuel_for_months(row: Row, months: Iterable[str] = ()) -> float:
    """Sum a fuel row's monthly cost columns.

    Only *months* are summed when given (codes not in ``MONTHS_ORDER`` simply
    contribute nothing), otherwise all twelve.
    """
    selected = tuple(months) or MONTHS_ORDER
    return sum(safe_float(row.get(m)) for m in selected)


# ── Reference joins ───────────────────────────────────────────────────────────


def index_by_vehicle(rows: Iterable[Row], year: str = "", *,
                     year_scoped: bool = True) -> dict[str, Row]:
    """Index reference rows by trimmed vehicle id for one active year.

    Resolution rule shared by every reference join: a row whose year equals
    *year* beats a row with no year (wildcard); among rows of equal
    specificity the last one wins.  Rows for other years are ignored.  With
    ``year_scoped=False`` (the static vehicle table) years are not consulted
    and the last row per vehicle wins.
    """
    exact: dict[str, Row] = {}
    wildcard: dict[str, Row] = {}
    for row in rows:
        vid = vehicle_id(row)
        if not vid:
            continue
        if not year_scoped:
            exact[vid] = row
            continue
        ry = row_year(row)
        if ry == year:
            exact[vid] = row
        elif not ry:
            wildcard[vid] = row
    wildcard.update(exact)
    return wildcard


def vehicle_area_index(areas: Iterable[Row], year: str) -> dict[str, str]:
    """Map trimmed vehicle id → trimmed area for *year*.

    Rows with a blank area are dropped before the usual join rule runs, so a
    blank year-specific row never shadows a named wildcard row.  The vehicle
    table and every area view resolve areas through here.
    """
    usable = [row for row in areas if area_name(row)]
    return {vid: area_name(row) for vid, row in index_by_vehicle(usable, year).items()}


class OrderedSet:
    """Insertion-ordered set of strings used for the joined display lists."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[str] = ()) -> None:
        self._items: dict[str, None] = dict.fromkeys(items)

    def add(self, item: str) -> None:
        self._items.setdefault(item, None)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def joined(self, sep: str = ", ") -> str:
        return sep.join(self._items)


# ── Normalised datasets ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Population:
    """Population and served population of one area in one year."""

    area: str
    year: str
    population: float
    served: float = 0.0


def population_for(population: Iterable[Population], year: str) -> list[Population]:
    """Population records of *year*; rows without a year never match."""
    return [p for p in population if p.year == year]


@dataclass(frozen=True)
class Worker:
    """One staff member; ``salary`` is annual (monthly sheet value × 12)."""

    name: str
    role: str
    area: str
    salary: float

    @property
    def monthly_salary(self) -> float:
        return self.salary / 12


@dataclass(frozen=True)
class Revenue:
    """Fee and recycling income for a year; area '' is unallocated revenue."""

    year: str
    household_fees: float = 0.0
    commercial_fees: float = 0.0
    recycling_revenue: float = 0.0
    area: str = ""

    @property
    def total(self) -> float:
        return self.household_fees + self.commercial_fees + self.recycling_revenue


@dataclass(frozen=True)
class WasteTreatment:
    year: str
    recyclables_tons: float = 0.0
    biowaste_tons: float = 0.0
    other_treatment_tons: float = 0.0

    @property
    def total_treated(self) -> float:
        return self.recyclables_tons + self.biowaste_tons + self.other_treatment_tons


@dataclass(frozen=True)
class AdditionalCost:
    """Non-operational cost buckets for one year."""

    year: str
    insurance: float = 0.0
    clothing: float = 0.0
    cleaning: float = 0.0
    containers: float = 0.0

    @property
    def total(self) -> float:
        return self.insurance + self.clothing + self.cleaning + self.containers

    def buckets(self) -> dict[str, float]:
        return {
            "insurance": self.insurance,
            "clothing": self.clothing,
            "cleaning": self.cleaning,
            "containers": self.containers,
        }


def year_text(value: Any) -> str:
    """Render a year cell as text ("2024" for 2024, 2024.0 or " 2024 ")."""
    if value is None or value == "":
        return ""
    n = safe_int(value, default=-1)
    if n < 0:
        return clean_text(value)
    return str(n)
