# services/export.py
"""
Pure export helpers for download buttons (criteria, deal board, profile JSON).
No Streamlit dependencies - can be imported by both logic and UI modules.
"""

import io
import json
from typing import Any, Dict, Optional

import pandas as pd

from logic.selection import SelectionState, Taxonomy, flatten_nodes

CRITERIA_COLUMNS = ["Kind", "Label", "Level"]


def criteria_frame(geography: Optional[Taxonomy], geo_state: Optional[SelectionState],
                   industry: Optional[Taxonomy], industry_state: Optional[SelectionState]) -> pd.DataFrame:
    """
    One row per submitted label, with the level it was selected at.

    Args:
        geography / geo_state: Geography taxonomy and selection
        industry / industry_state: Industry taxonomy and selection

    Returns:
        pd.DataFrame with columns Kind, Label, Level
    """
    rows = []
    for kind, taxonomy, state in (("Geography", geography, geo_state),
                                  ("Industry", industry, industry_state)):
        for level, node in flatten_nodes(taxonomy, state):
            rows.append({"Kind": kind, "Label": node.name, "Level": taxonomy.level_name(level)})
    return pd.DataFrame(rows, columns=CRITERIA_COLUMNS)


def export_dataframe_to_csv_bytes(df: pd.DataFrame) -> bytes:
    """
    Export DataFrame to CSV bytes.

    Args:
        df: DataFrame to export

    Returns:
        bytes: CSV data as bytes
    """
    return df.to_csv(index=False).encode("utf-8")


def export_dataframe_to_excel_bytes(df: pd.DataFrame, sheet_name: str = "Sheet1") -> bytes:
    """
    Export DataFrame to Excel bytes.

    Args:
        df: DataFrame to export
        sheet_name: Name of the sheet (max 31 chars)

    Returns:
        bytes: Excel file as bytes
    """
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=(sheet_name or "Sheet1")[:31])
    return buffer.getvalue()


def export_profile_json(profile: Dict[str, Any]) -> bytes:
    """Serialize a profile payload to pretty JSON bytes."""
    return json.dumps(profile or {}, indent=2, default=str).encode("utf-8")
