from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Type, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from covid_explorer.analysis.errors import DataQualityError

M = TypeVar("M", bound=BaseModel)


def parse_records(model: Type[M], rows: Iterable[Mapping[str, Any]]) -> List[M]:
    """
    Validate raw row mappings into typed records.

    Args:
        model: Pydantic model to build (e.g. CaseRecord).
        rows: Iterable of dict-like rows.

    Returns:
        List of validated records, in input order.

    Raises:
        DataQualityError: If any row holds a value that cannot be read as its
            declared type. The whole batch is rejected; nothing is returned.
    """
    out: List[M] = []
    for i, row in enumerate(rows):
        try:
            out.append(model.model_validate(dict(row)))
        except ValidationError as exc:
            raise DataQualityError(f"{model.__name__} row {i} is malformed: {exc}") from exc
    return out


def _clean(value: Any) -> Any:
    """Turn pandas/numpy scalars into plain Python values (NaN/NaT -> None)."""
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if hasattr(value, "item"):
        return _clean(value.item())
    return value


def frame_records(df: pd.DataFrame) -> List[dict]:
    """
    Convert a DataFrame into plain dict rows suitable for `parse_records`.

    Returns:
        One dict per row with None for missing values.
    """
    return [{col: _clean(val) for col, val in row.items()} for row in df.to_dict("records")]
