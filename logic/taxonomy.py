# logic/taxonomy.py
"""
Build reference taxonomies (geography, industry) for the hierarchical pickers.
No Streamlit dependencies - can be imported by both logic and UI modules.

Two sources are supported:
  - nested records as served by the API ({"id", "name", "regions": [...]})
  - tabular data, one column per level, one row per (possibly partial) path

DUPLICATE ROWS POLICY:
Each row is a path. Shared prefixes are expected; children are deduplicated per
parent by name in first-seen order, so row multiplication never creates extra nodes.
"""

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from logic.selection import Node, Taxonomy
from utils.helpers import normalize_text, path_id, drop_malformed_paths

logger = logging.getLogger(__name__)


def build_taxonomy(records: Sequence[Mapping[str, Any]], levels: Sequence[str],
                   child_keys: Sequence[str]) -> Taxonomy:
    """
    Build a Taxonomy from nested dict records.

    Args:
        records: Root records, each with "name", optional "id" and a children list
        levels: Level names, root first
        child_keys: Key of the children list at each depth (len(levels) - 1 entries)

    Returns:
        Taxonomy

    Raises:
        ValueError: If a record has no name, or ids collide within a level
    """
    def _node(rec: Mapping[str, Any], depth: int, names: List[str]) -> Node:
        name = normalize_text(rec.get("name"))
        if not name:
            raise ValueError(f"Record at level '{levels[depth]}' has no name: {dict(rec)!r}")
        path = names + [name]
        node_id = normalize_text(rec.get("id")) or path_id(path)
        children: List[Node] = []
        if depth < len(child_keys):
            for child in rec.get(child_keys[depth]) or []:
                children.append(_node(child, depth + 1, path))
        return Node(node_id, name, tuple(children))

    return Taxonomy((_node(r, 0, []) for r in records or []), levels)


def taxonomy_from_dataframe(df: pd.DataFrame, levels: Sequence[str]) -> Optional[Taxonomy]:
    """
    Build a Taxonomy from a DataFrame with one column per level name.

    Blank cells end a path (a region without sub-regions is a leaf). Rows with a gap
    (blank cell before a filled one) are dropped. Returns None when no level column is
    present at all.
    """
    try:
        if not isinstance(df, pd.DataFrame):
            return None
        level_cols = list(levels)
        if not any(c in df.columns for c in level_cols):
            return None

        df_normalized = df.copy()
        for col in level_cols:
            if col not in df_normalized.columns:
                df_normalized[col] = ""
            df_normalized[col] = df_normalized[col].map(normalize_text)

        before = len(df_normalized)
        df_normalized = drop_malformed_paths(df_normalized, level_cols)
        dropped = before - len(df_normalized)
        if dropped:
            logger.warning("Dropped %d malformed taxonomy row(s) for %s", dropped, level_cols[0])

        # name -> (children dict) per parent, insertion-ordered
        tree: Dict[str, Dict] = {}
        for row in df_normalized[level_cols].itertuples(index=False, name=None):
            cursor = tree
            for value in row:
                if not value:
                    break
                cursor = cursor.setdefault(value, {})

        def _to_nodes(branch: Dict[str, Dict], names: List[str]) -> List[Node]:
            out = []
            for name, sub in branch.items():
                path = names + [name]
                out.append(Node(path_id(path), name, tuple(_to_nodes(sub, path))))
            return out

        return Taxonomy(_to_nodes(tree, []), level_cols)
    except ValueError:
        raise
    except Exception as e:
        logger.error("Could not build taxonomy from DataFrame: %s", e)
        return None


def truncate(taxonomy: Optional[Taxonomy], depth: int) -> Optional[Taxonomy]:
    """Shallower variant keeping the first `depth` levels (e.g. a 3-level industry picker)."""
    if taxonomy is None:
        return None
    if depth < 1:
        raise ValueError("depth must be >= 1")
    if depth >= taxonomy.depth:
        return taxonomy

    def _cut(node: Node, level: int) -> Node:
        if level + 1 >= depth:
            return Node(node.id, node.name, ())
        return Node(node.id, node.name, tuple(_cut(c, level + 1) for c in node.children))

    return Taxonomy((_cut(r, 0) for r in taxonomy.roots), taxonomy.levels[:depth])


def taxonomy_to_dataframe(taxonomy: Optional[Taxonomy]) -> pd.DataFrame:
    """One row per root-to-leaf path, one column per level (inverse of taxonomy_from_dataframe)."""
    if taxonomy is None:
        return pd.DataFrame()
    cols = list(taxonomy.levels)
    rows = []
    for level, node, ancestors in taxonomy.walk():
        if node.is_leaf:
            names = [a.name for a in ancestors] + [node.name]
            rows.append(names + [""] * (len(cols) - len(names)))
    return pd.DataFrame(rows, columns=cols)


def load_reference_taxonomy(path: str, levels: Sequence[str]) -> Optional[Taxonomy]:
    """
    Read a bundled reference CSV. Returns None when the file is missing or unreadable,
    which callers treat as "reference data not loaded".
    """
    if not path or not os.path.exists(path):
        logger.warning("Reference data not found: %s", path)
        return None
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except Exception as e:
        logger.error("Failed to read reference data %s: %s", path, e)
        return None
    taxonomy = taxonomy_from_dataframe(df, levels)
    if taxonomy is not None:
        logger.info("Loaded %s from %s", taxonomy, os.path.basename(path))
    return taxonomy
