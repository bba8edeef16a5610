"""Export reconciliation outcomes as a CSV or Excel report."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, MutableMapping, Optional, Union

import pandas as pd

from .models import ContactStatus, ReconciliationOutcome

PathLike = Union[str, Path]

REPORT_COLUMNS = ["email", "status", "entity", "entity_id", "field", "detail"]


def outcomes_to_dataframe(outcomes: Iterable[ReconciliationOutcome]) -> pd.DataFrame:
    """Convert reconciliation outcomes into a :class:`pandas.DataFrame`."""

    return pd.DataFrame([outcome.as_row() for outcome in outcomes], columns=REPORT_COLUMNS)


def summarise_outcomes(outcomes: Iterable[ReconciliationOutcome]) -> dict[str, int]:
    """Count outcomes per status, listing every status even when absent."""

    counts = {status.value: 0 for status in ContactStatus if status is not ContactStatus.WAITING}
    for outcome in outcomes:
        counts[outcome.status.value] = counts.get(outcome.status.value, 0) + 1
    return counts


def export_outcomes(
    outcomes: Iterable[ReconciliationOutcome],
    path: PathLike,
    *,
    sheet_name: str = "Reconciliation",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write ``outcomes`` to ``path``; the suffix selects CSV, TSV or Excel."""

    dataframe = outcomes_to_dataframe(outcomes)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = output_path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(output_path, index=False, **exporter_kwargs)
        return output_path

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(output_path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return output_path

    raise ValueError(f"Unsupported report file extension: {suffix}")


__all__ = ["REPORT_COLUMNS", "export_outcomes", "outcomes_to_dataframe", "summarise_outcomes"]
