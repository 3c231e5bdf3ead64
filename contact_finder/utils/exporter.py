"""
Load batch input and export discovery results to CSV and JSON.
"""

import json
from pathlib import Path
from typing import List

import pandas as pd
from loguru import logger

from contact_finder.models.result import CompanyTarget

_URL_COLUMNS = ("url", "homepage_url", "website", "homepage")
_ID_COLUMNS = ("row_id", "id")


def _ensure_dir(path: Path) -> None:
    """Create parent directories if they don't exist."""
    path.parent.mkdir(parents=True, exist_ok=True)


def _pick_column(columns: List[str], names: tuple) -> str | None:
    lowered = {c.lower(): c for c in columns}
    for name in names:
        if name in lowered:
            return lowered[name]
    return None


def load_targets(input_path: Path, limit: int | None = None) -> List[CompanyTarget]:
    """
    Read ``row_id,url`` rows from a CSV file.

    The URL column may also be named ``homepage_url``, ``website`` or
    ``homepage``; without an id column the 1-based row number is used.
    Rows with an empty URL are skipped.
    """
    df = pd.read_csv(input_path, dtype=str).fillna("")
    url_col = _pick_column(list(df.columns), _URL_COLUMNS)
    if url_col is None:
        raise ValueError(f"No URL column in {input_path} (expected one of {_URL_COLUMNS})")
    id_col = _pick_column(list(df.columns), _ID_COLUMNS)

    targets: List[CompanyTarget] = []
    for position, row in enumerate(df.to_dict("records"), start=1):
        url = row[url_col].strip()
        if not url:
            continue
        row_id = row[id_col].strip() if id_col else ""
        targets.append(CompanyTarget(row_id=row_id or str(position), homepage_url=url))
        if limit is not None and len(targets) >= limit:
            break

    logger.info("Loaded {} targets  <-  {}", len(targets), input_path)
    return targets


def export_to_csv(data: List[CompanyTarget], output_path: Path) -> Path:
    """
    Write rows to a CSV file using pandas.

    Returns the resolved output path.
    """
    _ensure_dir(output_path)
    records = [item.model_dump() for item in data]
    df = pd.DataFrame(records)
    df.to_csv(output_path, index=False, encoding="utf-8")
    logger.info("CSV exported ({} rows)  ->  {}", len(df), output_path)
    return output_path


def export_to_json(data: List[CompanyTarget], output_path: Path) -> Path:
    _ensure_dir(output_path)
    records = [item.model_dump(mode="json") for item in data]
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(records, fh, ensure_ascii=False, indent=2, default=str)
    logger.info("JSON exported ({} records)  ->  {}", len(records), output_path)
    return output_path


def export_all(data: List[CompanyTarget], output_dir: Path, run_name: str) -> dict:
    """
    Export results as CSV and JSON.

    Returns a dict with both output paths.
    """
    safe_name = run_name.replace(" ", "_").lower()
    csv_path = output_dir / f"{safe_name}_contacts.csv"
    json_path = output_dir / f"{safe_name}_contacts.json"

    export_to_csv(data, csv_path)
    export_to_json(data, json_path)

    return {"csv": csv_path, "json": json_path}
