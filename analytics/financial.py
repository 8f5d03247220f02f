"""Cost, revenue and cost-recovery aggregation.

Combines pro-rated worker salaries, the vehicle table's fuel and maintenance
totals, the year's additional cost buckets and revenue rows into one
``FinancialSummary``, fleet-wide and per area.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional, Sequence

from analytics.records import (
    UNSPECIFIED,
    AdditionalCost,
    Revenue,
    Worker,
)
from analytics.vehicles import VehicleRow
from utils.common import percent, safe_ratio
from utils.config import ANALYTICS


@dataclass(frozen=True)
class AreaFinancialRow:
    area: str
    salaries: float
    operational: float
    expense: float
    revenue: float
    net_balance: float
    recovery_rate: float
    tons: float
    cost_per_ton: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FinancialSummary:
    salaries: float
    fuel: float
    maintenance: float
    operational: float
    additional: float
    total_cost: float
    revenue: float
    cost_recovery: float
    total_tons: float
    cost_per_ton: float
    total_population: float
    cost_per_capita: float
    affordability_index: float
    allocation: list[dict[str, Any]] = field(default_factory=list)
    areas: list[AreaFinancialRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def prorated_salary(worker: Worker, active_month_count: int) -> float:
    """Annual salary scaled to *active_month_count* months."""
    return worker.monthly_salary * active_month_count


def aggregate_financials(workers: Iterable[Worker], vehicle_rows: Sequence[VehicleRow],
                         additional_cost: Optional[AdditionalCost],
                         revenues: Iterable[Revenue], active_month_count: int,
                         total_tons: Optional[float] = None,
                         total_population: float = 0) -> FinancialSummary:
    """Build the fleet-wide and per-area financial picture.

    ``revenues`` must already be restricted to the active year.  ``total_tons``
    defaults to the vehicle table's tons; pass the generated tonnage instead
    for the annual summary.
    """
    workers = list(workers)
    revenues = list(revenues)

    salaries = sum(prorated_salary(w, active_month_count) for w in workers)
    fuel = sum(v.fuel for v in vehicle_rows)
    maint = sum(v.maintenance for v in vehicle_rows)
    operational = fuel + maint
    additional = additional_cost.total if additional_cost else 0.0
    total_cost = salaries + operational + additional
    revenue = sum(r.total for r in revenues)
    if total_tons is None:
        total_tons = sum(v.tons for v in vehicle_rows)
    cost_per_capita = safe_ratio(total_cost, total_population)

    return FinancialSummary(
        salaries=salaries,
        fuel=fuel,
        maintenance=maint,
        operational=operational,
        additional=additional,
        total_cost=total_cost,
        revenue=revenue,
        cost_recovery=percent(revenue, total_cost),
        total_tons=total_tons,
        cost_per_ton=safe_ratio(total_cost, total_tons),
        total_population=total_population,
        cost_per_capita=cost_per_capita,
        affordability_index=cost_per_capita / ANALYTICS.affordability_benchmark * 100,
        allocation=[
            {"name": "salaries", "value": salaries},
            {"name": "fuel", "value": fuel},
            {"name": "maintenance", "value": maint},
            {"name": "additional", "value": additional},
        ],
        areas=area_financials(workers, vehicle_rows, revenues, active_month_count),
    )


def area_financials(workers: Iterable[Worker], vehicle_rows: Iterable[VehicleRow],
                    revenues: Iterable[Revenue],
                    active_month_count: int) -> list[AreaFinancialRow]:
    """Re-key salaries, vehicle costs and revenue by area, biggest spender first."""
    acc: dict[str, list[float]] = {}

    def bucket(area: str) -> list[float]:
        # salaries, operational, revenue, tons
        return acc.setdefault(area.strip() or UNSPECIFIED, [0.0, 0.0, 0.0, 0.0])

    for v in vehicle_rows:
        b = bucket(v.area)
        b[1] += v.fuel + v.maintenance
        b[3] += v.tons
    for w in workers:
        bucket(w.area)[0] += prorated_salary(w, active_month_count)
    for r in revenues:
        bucket(r.area)[2] += r.total

    rows = []
    for area, (sal, oper, rev, tons) in acc.items():
        expense = sal + oper
        rows.append(AreaFinancialRow(
            area=area,
            salaries=sal,
            operational=oper,
            expense=expense,
            revenue=rev,
            net_balance=rev - expense,
            recovery_rate=percent(rev, expense),
            tons=tons,
            cost_per_ton=safe_ratio(expense, tons),
        ))
    rows.sort(key=lambda r: r.expense, reverse=True)
    return rows


# ── Salary analysis ───────────────────────────────────────────────────────────


def _salary_groups(workers: Sequence[Worker], key) -> list[dict[str, Any]]:
    groups: dict[str, dict[str, Any]] = {}
    for w in workers:
        g = groups.setdefault(key(w), {"count": 0, "total": 0.0, "roles": {}})
        g["count"] += 1
        g["total"] += w.salary
        g["roles"][w.role] = g["roles"].get(w.role, 0) + 1
    out = []
    for name, g in groups.items():
        out.append({
            "name": name,
            "count": g["count"],
            "total": g["total"],
            "average": safe_ratio(g["total"], g["count"]),
            "roles": [{"role": r, "count": c} for r, c in g["roles"].items()],
        })
    out.sort(key=lambda d: d["total"], reverse=True)
    return out


def salary_breakdown(workers: Iterable[Worker], search: str = "") -> dict[str, Any]:
    """Annual salaries grouped by role and by area.

    *search* keeps workers whose name, role or area contains it.  The area
    groups carry each area's role distribution.
    """
    term = (search or "").strip()
    matched = [
        w for w in workers
        if not term or term in w.name or term in w.role or term in w.area
    ]
    by_role = _salary_groups(matched, lambda w: w.role)
    for g in by_role:
        del g["roles"]
    return {
        "count": len(matched),
        "total": sum(w.salary for w in matched),
        "by_role": by_role,
        "by_area": _salary_groups(matched, lambda w: w.area or UNSPECIFIED),
        "workers": [asdict(w) for w in matched],
    }


# ── Revenue and additional cost history ───────────────────────────────────────


def _revenue_totals(rows: Sequence[Revenue]) -> dict[str, float]:
    return {
        "household_fees": sum(r.household_fees for r in rows),
        "commercial_fees": sum(r.commercial_fees for r in rows),
        "recycling_revenue": sum(r.recycling_revenue for r in rows),
        "total": sum(r.total for r in rows),
    }


def revenue_breakdown(revenues: Iterable[Revenue], year: str,
                      comparison_year: str = "") -> dict[str, Any]:
    """Revenue totals per source for *year* (and the comparison year).

    The area distribution only counts rows that name an area; the source
    distribution omits sources with no income.
    """
    revenues = list(revenues)
    current = [r for r in revenues if r.year == year]
    totals = _revenue_totals(current)

    by_area: dict[str, float] = {}
    for r in current:
        if r.area:
            by_area[r.area] = by_area.get(r.area, 0.0) + r.total
    area_dist = sorted(
        ({"name": k, "value": v} for k, v in by_area.items()),
        key=lambda d: d["value"], reverse=True,
    )
    source_dist = [
        {"name": k, "value": totals[k]}
        for k in ("household_fees", "commercial_fees", "recycling_revenue")
        if totals[k] > 0
    ]

    comparison = None
    if comparison_year:
        comparison = _revenue_totals([r for r in revenues if r.year == comparison_year])

    return {
        "year": year,
        "current": totals,
        "comparison_year": comparison_year,
        "comparison": comparison,
        "by_area": area_dist,
        "by_source": source_dist,
    }


def additional_cost_history(costs: Iterable[AdditionalCost]) -> dict[str, Any]:
    """All years of additional costs, newest first, with the latest year's split."""
    ordered = sorted(costs, key=lambda c: c.year, reverse=True)
    rows = [{**asdict(c), "total": c.total} for c in ordered]
    latest = [
        {"name": k, "value": v} for k, v in ordered[0].buckets().items()
    ] if ordered else []
    return {"rows": rows, "latest": latest}
