"""daily_kpi package.

Contains modules for ingesting a sparse daily time series (one value per
calendar day, days may be missing), persisting it, and deriving
comparable-period analytics from it: monthly aggregates with MoM/YoY growth
and KPI rollups (trailing averages, month-to-date, fiscal year-to-date).

Architecture:
- CSV → RecordStore (JSON file or MongoDB) → aggregates
- Every aggregate is recomputed from the sorted daily series on each query
- Pydantic models describe records, monthly rows and KPI snapshots
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
