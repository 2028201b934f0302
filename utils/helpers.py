# utils/helpers.py
import re
from typing import Iterable, List, Optional
import numpy as np
import pandas as pd
from .constants import ID_PATH_SEP

def normalize_text(x) -> str:
    """Return a stripped string, converting NaN/None to ""."""
    try:
        if x is None:
            return ""
        if isinstance(x, float) and np.isnan(x):
            return ""
    except Exception:
        return ""
    return str(x).strip()

def contains_ci(haystack, needle: str) -> bool:
    """Case-insensitive substring test on normalized text."""
    return normalize_text(needle).lower() in normalize_text(haystack).lower()

def slugify(x) -> str:
    """Lowercase, dash-separated slug of a label ("Western Europe" -> "western-europe")."""
    s = normalize_text(x).lower()
    s = re.sub(r"[^a-z0-9]+", "-", s)
    return s.strip("-")

def path_id(names: Iterable[str]) -> str:
    """Stable id for a node from the names along its path."""
    return ID_PATH_SEP.join(slugify(n) for n in names)

def dedupe_preserve_order(values: Iterable) -> List[str]:
    """Normalize, drop blanks and duplicates, keep first-seen order."""
    out: List[str] = []
    seen = set()
    for v in values or []:
        t = normalize_text(v)
        if t and t not in seen:
            seen.add(t)
            out.append(t)
    return out

def mask_token(token: Optional[str]) -> str:
    """Short prefix of a bearer token, safe for logs."""
    if not token:
        return "<none>"
    return token[:10] + "..."

def drop_malformed_paths(df: pd.DataFrame, level_cols: List[str]) -> pd.DataFrame:
    """Drop fully blank rows and rows with a blank cell before a filled one."""
    try:
        if not isinstance(df, pd.DataFrame) or df.empty:
            return pd.DataFrame(columns=level_cols)
        missing_cols = [col for col in level_cols if col not in df.columns]
        if missing_cols:
            return pd.DataFrame(columns=level_cols)

        def _ok(row) -> bool:
            filled = [i for i, v in enumerate(row) if normalize_text(v)]
            return bool(filled) and filled == list(range(len(filled)))

        mask = df[level_cols].apply(_ok, axis=1)
        return df[mask].copy()
    except Exception:
        return pd.DataFrame(columns=level_cols)
