# ui/components/tree_picker.py
"""
Hierarchical checkbox picker (geography, industry).

Checkbox widgets never own the selection: before each draw their session keys are
overwritten from the SelectionState, and clicks go through on_change callbacks into
toggle(). That keeps cascaded and reconciled values on screen after every click.
"""

import logging
from typing import Optional

import streamlit as st

import utils.state as USTATE
from logic.selection import (
    Node, NotFoundError, SelectionState, Taxonomy,
    empty_state, filter_tree, flatten, node_status, remove_by_label, toggle, count_selected,
)
from ui.utils.guards import ensure_reference_data
from utils.constants import STATUS_CHECKED, STATUS_PARTIAL
from utils.helpers import normalize_text

logger = logging.getLogger(__name__)

# profile.targetCriteria field mirrored from each picker
CRITERIA_FIELDS = {"geography": "countries", "industry": "industrySectors"}
PICKER_ERROR_KEY = "picker_error"


def _checkbox_key(kind: str, level: int, node_id: str) -> str:
    return f"chk|{kind}|{level}|{node_id}"


def sync_profile_labels(kind: str, taxonomy: Optional[Taxonomy]) -> None:
    """Mirror the flat label list onto the profile form."""
    if taxonomy is None:
        return
    profile = USTATE.get_profile()
    profile["targetCriteria"][CRITERIA_FIELDS[kind]] = flatten(taxonomy, USTATE.get_selection(kind))


def _on_toggle(kind: str, taxonomy: Taxonomy, level: int, node_id: str) -> None:
    try:
        USTATE.set_selection(kind, toggle(taxonomy, USTATE.get_selection(kind), level, node_id))
    except NotFoundError as e:
        logger.warning("Toggle on stale node %s/%s: %s", kind, node_id, e)
        st.session_state[PICKER_ERROR_KEY] = f"That item is no longer available ({node_id})."
        return
    sync_profile_labels(kind, taxonomy)


def _on_remove(kind: str, taxonomy: Taxonomy, label: str) -> None:
    USTATE.set_selection(kind, remove_by_label(taxonomy, USTATE.get_selection(kind), label))
    sync_profile_labels(kind, taxonomy)


def _on_clear(kind: str, taxonomy: Taxonomy) -> None:
    USTATE.set_selection(kind, empty_state(taxonomy))
    sync_profile_labels(kind, taxonomy)


def _render_node(kind: str, taxonomy: Taxonomy, state: SelectionState,
                 node: Node, level: int, force_open: bool) -> None:
    status = node_status(taxonomy, state, level, node.id)
    indent, toggle_col, box_col = st.columns([0.01 + 0.6 * level, 0.6, 12])

    open_ = False
    with toggle_col:
        if not node.is_leaf:
            open_ = force_open or USTATE.is_expanded(kind, level, node.id)
            st.button(
                "▾" if open_ else "▸",
                key=f"exp|{kind}|{level}|{node.id}",
                on_click=USTATE.toggle_expanded,
                args=(kind, level, node.id),
                disabled=force_open,
            )

    with box_col:
        key = _checkbox_key(kind, level, node.id)
        st.session_state[key] = status == STATUS_CHECKED
        label = node.name
        if status == STATUS_PARTIAL:
            label = f"{node.name} ◐"
        st.checkbox(
            label,
            key=key,
            on_change=_on_toggle,
            args=(kind, taxonomy, level, node.id),
            help=taxonomy.level_name(level),
        )

    if open_:
        for child in node.children:
            _render_node(kind, taxonomy, state, child, level + 1, force_open)


def _render_chips(kind: str, taxonomy: Taxonomy, state: SelectionState) -> None:
    labels = flatten(taxonomy, state)
    if not labels:
        st.caption("Nothing selected yet.")
        return
    st.caption(f"Selected ({len(labels)}):")
    per_row = 4
    for start in range(0, len(labels), per_row):
        cols = st.columns(per_row)
        for offset, (col, label) in enumerate(zip(cols, labels[start:start + per_row])):
            with col:
                st.button(
                    f"✕ {label}",
                    key=f"rm|{kind}|{start + offset}|{label}",
                    on_click=_on_remove,
                    args=(kind, taxonomy, label),
                    use_container_width=True,
                )
    st.button("Clear all", key=f"clear|{kind}", on_click=_on_clear, args=(kind, taxonomy))


def render_tree_picker(kind: str, taxonomy: Optional[Taxonomy], title: str) -> None:
    """
    Draw search box, tree and selected-label chips for one taxonomy.

    Args:
        kind: "geography" or "industry" (selects the session keys)
        taxonomy: Full taxonomy, or None while reference data is unavailable
        title: Section heading
    """
    st.markdown(f"**{title}**")
    if not ensure_reference_data(kind, taxonomy):
        return

    state = USTATE.get_selection(kind)
    if state is None:
        state = empty_state(taxonomy)
        USTATE.set_selection(kind, state)

    error = st.session_state.pop(PICKER_ERROR_KEY, None)
    if error:
        st.warning(error)

    query = st.text_input(
        f"Search {title.lower()}", key=f"search|{kind}", placeholder=f"Search {title.lower()}..."
    )
    force_open = bool(normalize_text(query))
    view = filter_tree(taxonomy, query)

    with st.container(height=360):
        if not view.roots:
            st.caption(f"No {title.lower()} matches '{normalize_text(query)}'.")
        for root in view.roots:
            _render_node(kind, taxonomy, state, root, 0, force_open)

    st.caption(f"{count_selected(state)} node(s) checked across {taxonomy.depth} levels")
    _render_chips(kind, taxonomy, state)
