# logic/selection.py
"""
Hierarchical selection over an N-level taxonomy (geography, industry).
No Streamlit dependencies - can be imported by both logic and UI modules.

SELECTION POLICY:
Selection is kept per level as an id -> bool map; ids only need to be unique within
their own level. Toggling a node cascades the new value to every descendant, then
walks the ancestor chain bottom-up and marks each ancestor selected iff all of its
direct children are selected. Nodes without children are leaves by design and their
flag is only ever set directly.

The flat label list (what gets submitted to the API) holds the highest selected node
on each path and nothing below it.

Every operation returns a new SelectionState; inputs are never mutated. A missing
taxonomy (reference data not loaded yet) turns every operation into a no-op.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from utils.constants import STATUS_CHECKED, STATUS_PARTIAL, STATUS_UNCHECKED
from utils.helpers import normalize_text

logger = logging.getLogger(__name__)


class NotFoundError(KeyError):
    """Raised when a node id is not present at the given level."""


@dataclass(frozen=True)
class Node:
    id: str
    name: str
    children: Tuple["Node", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


# (level, node, ancestors root..parent)
Located = Tuple[int, Node, Tuple[Node, ...]]


class Taxonomy:
    """Ordered roots plus the level schema (one name per depth)."""

    def __init__(self, roots: Iterable[Node], levels: Iterable[str]):
        self.roots: Tuple[Node, ...] = tuple(roots)
        self.levels: Tuple[str, ...] = tuple(levels)
        self._index: Dict[Tuple[int, str], Tuple[Node, Tuple[Node, ...]]] = {}
        for level, node, ancestors in self.walk():
            if level >= len(self.levels):
                raise ValueError(
                    f"Node '{node.name}' sits at depth {level + 1} but the schema only has "
                    f"{len(self.levels)} level(s): {list(self.levels)}"
                )
            key = (level, node.id)
            if key in self._index:
                raise ValueError(f"Duplicate id '{node.id}' at level '{self.levels[level]}'")
            self._index[key] = (node, ancestors)

    @property
    def depth(self) -> int:
        return len(self.levels)

    @property
    def size(self) -> int:
        return len(self._index)

    def level_name(self, level: int) -> str:
        return self.levels[level]

    def walk(self) -> Iterator[Located]:
        """Depth-first pre-order traversal in insertion order."""
        def _walk(nodes: Tuple[Node, ...], ancestors: Tuple[Node, ...]) -> Iterator[Located]:
            for node in nodes:
                yield len(ancestors), node, ancestors
                yield from _walk(node.children, ancestors + (node,))
        yield from _walk(self.roots, ())

    def locate(self, level: int, node_id: str) -> Tuple[Node, Tuple[Node, ...]]:
        """Return (node, ancestors) or raise NotFoundError."""
        try:
            return self._index[(level, node_id)]
        except KeyError:
            raise NotFoundError(f"No node with id '{node_id}' at level {level}") from None

    def contains(self, level: int, node_id: str) -> bool:
        return (level, node_id) in self._index

    def find_by_name(self, label: str,
                     prefer: Optional[Callable[[int, Node], bool]] = None) -> Optional[Located]:
        """
        First node whose name equals label, in traversal order.

        When `prefer` is given, the first match satisfying it wins and the plain first
        match is the fallback.
        """
        target = normalize_text(label)
        if not target:
            return None
        first: Optional[Located] = None
        for level, node, ancestors in self.walk():
            if node.name != target:
                continue
            if prefer is None or prefer(level, node):
                return level, node, ancestors
            if first is None:
                first = (level, node, ancestors)
        return first

    def deepest_namesake(self, level: int, node: Node,
                         ancestors: Tuple[Node, ...]) -> Located:
        """
        Follow same-named descendants down from node and return the deepest one.

        A "Financial Services" group holding a "Financial Services" industry resolves to
        the industry.
        """
        def _first_below(parent: Node, chain: Tuple[Node, ...]) -> Optional[Located]:
            for child in parent.children:
                if child.name == parent_name:
                    return len(chain), child, chain
                found = _first_below(child, chain + (child,))
                if found is not None:
                    return found
            return None

        parent_name = node.name
        while True:
            below = _first_below(node, ancestors + (node,))
            if below is None:
                return level, node, ancestors
            level, node, ancestors = below

    def __repr__(self) -> str:
        return f"Taxonomy(levels={list(self.levels)}, roots={len(self.roots)}, nodes={self.size})"


class SelectionState:
    """Immutable per-level selection maps. A missing key means not selected."""

    __slots__ = ("_levels",)

    def __init__(self, levels: Iterable[Mapping[str, bool]] = ()):
        self._levels: Tuple[Dict[str, bool], ...] = tuple(dict(m) for m in levels)

    @classmethod
    def empty(cls, depth: int) -> "SelectionState":
        return cls({} for _ in range(depth))

    @classmethod
    def _wrap(cls, maps: List[Dict[str, bool]]) -> "SelectionState":
        state = cls()
        state._levels = tuple(maps)
        return state

    def _copy_maps(self, depth: int) -> List[Dict[str, bool]]:
        maps = [dict(m) for m in self._levels[:depth]]
        while len(maps) < depth:
            maps.append({})
        return maps

    @property
    def depth(self) -> int:
        return len(self._levels)

    def is_selected(self, level: int, node_id: str) -> bool:
        if level < 0 or level >= len(self._levels):
            return False
        return bool(self._levels[level].get(node_id, False))

    def selected_pairs(self) -> frozenset:
        return frozenset(
            (level, node_id)
            for level, m in enumerate(self._levels)
            for node_id, v in m.items() if v
        )

    def to_dict(self) -> List[Dict[str, bool]]:
        return [dict(m) for m in self._levels]

    def __eq__(self, other) -> bool:
        if not isinstance(other, SelectionState):
            return NotImplemented
        return self.selected_pairs() == other.selected_pairs()

    def __hash__(self) -> int:
        return hash(self.selected_pairs())

    def __repr__(self) -> str:
        return f"SelectionState(selected={sorted(self.selected_pairs())})"


def empty_state(taxonomy: Optional[Taxonomy]) -> SelectionState:
    return SelectionState.empty(taxonomy.depth if taxonomy is not None else 0)


# ----------------- cascade / reconcile -----------------

def _cascade(maps: List[Dict[str, bool]], level: int, node: Node, value: bool) -> None:
    maps[level][node.id] = value
    for child in node.children:
        _cascade(maps, level + 1, child, value)


def _reconcile(maps: List[Dict[str, bool]], ancestors: Tuple[Node, ...]) -> None:
    # Immediate parent first: each ancestor reads its children's already-updated flags.
    for level in range(len(ancestors) - 1, -1, -1):
        parent = ancestors[level]
        if parent.is_leaf:
            continue
        maps[level][parent.id] = all(maps[level + 1].get(c.id, False) for c in parent.children)


def _apply(taxonomy: Taxonomy, state: SelectionState, level: int, node: Node,
           ancestors: Tuple[Node, ...], value: bool) -> SelectionState:
    maps = state._copy_maps(taxonomy.depth)
    _cascade(maps, level, node, value)
    _reconcile(maps, ancestors)
    return SelectionState._wrap(maps)


# ----------------- operations -----------------

def set_selected(taxonomy: Optional[Taxonomy], state: Optional[SelectionState],
                 level: int, node_id: str, value: bool) -> Optional[SelectionState]:
    """Set a node (and its whole subtree) to value, then reconcile its ancestors."""
    if taxonomy is None:
        return state
    if state is None:
        state = empty_state(taxonomy)
    node, ancestors = taxonomy.locate(level, node_id)
    return _apply(taxonomy, state, level, node, ancestors, bool(value))


def toggle(taxonomy: Optional[Taxonomy], state: Optional[SelectionState],
           level: int, node_id: str) -> Optional[SelectionState]:
    """
    Flip a node's selection, cascade down, reconcile up.

    Raises:
        NotFoundError: If node_id is not present at level (state is left untouched)
    """
    if taxonomy is None:
        return state
    if state is None:
        state = empty_state(taxonomy)
    node, ancestors = taxonomy.locate(level, node_id)
    return _apply(taxonomy, state, level, node, ancestors, not state.is_selected(level, node_id))


def flatten_nodes(taxonomy: Optional[Taxonomy],
                  state: Optional[SelectionState]) -> List[Tuple[int, Node]]:
    """(level, node) for the highest selected node on every selected path."""
    if taxonomy is None or state is None:
        return []
    out: List[Tuple[int, Node]] = []

    def _visit(nodes: Tuple[Node, ...], level: int) -> None:
        for node in nodes:
            if state.is_selected(level, node.id):
                out.append((level, node))
            else:
                _visit(node.children, level + 1)

    _visit(taxonomy.roots, 0)
    return out


def flatten(taxonomy: Optional[Taxonomy], state: Optional[SelectionState]) -> List[str]:
    """Minimal label list for submission, in tree order."""
    return [node.name for _, node in flatten_nodes(taxonomy, state)]


def remove_by_label(taxonomy: Optional[Taxonomy], state: Optional[SelectionState],
                    label: str) -> Optional[SelectionState]:
    """
    Deselect the node carrying label (plus its subtree) and reconcile its ancestors.

    The node behind the matching entry of the flat list wins, so a chip always removes
    what it showed. Otherwise a selected node with that name is preferred over an
    unselected one. No match is a no-op.
    """
    if taxonomy is None or state is None:
        return state
    target = normalize_text(label)
    shown = next(((lvl, n) for lvl, n in flatten_nodes(taxonomy, state) if n.name == target), None)
    if shown is not None:
        level, node = shown
        _, ancestors = taxonomy.locate(level, node.id)
        return _apply(taxonomy, state, level, node, ancestors, False)
    found = taxonomy.find_by_name(label, prefer=lambda lvl, n: state.is_selected(lvl, n.id))
    if found is None:
        return state
    level, node, ancestors = found
    return _apply(taxonomy, state, level, node, ancestors, False)


def reverse_apply(taxonomy: Optional[Taxonomy], labels: Iterable[str],
                  state: Optional[SelectionState] = None) -> SelectionState:
    """
    Rebuild a selection from saved labels (profile load).

    Each label selects the first node with that name at any level, exactly as if the
    user had checked it. When a descendant of that node carries the same name, the
    deepest one on the chain is selected instead. Labels unknown to the current
    taxonomy are skipped.
    """
    if taxonomy is None:
        return state if state is not None else SelectionState()
    if state is None:
        state = empty_state(taxonomy)
    for label in labels or []:
        found = taxonomy.find_by_name(label)
        if found is None:
            logger.debug("Skipping saved label %r: not in current %s taxonomy",
                         label, taxonomy.levels[0] if taxonomy.levels else "?")
            continue
        level, node, ancestors = taxonomy.deepest_namesake(*found)
        state = _apply(taxonomy, state, level, node, ancestors, True)
    return state


def filter_tree(taxonomy: Optional[Taxonomy], query: str) -> Optional[Taxonomy]:
    """
    Read-only projection of the taxonomy for a search box.

    Keeps every node whose name contains the query (case-insensitive) together with its
    ancestors. A kept node shows only its kept children; a matching node with no matching
    descendants keeps its full subtree.
    """
    if taxonomy is None:
        return None
    q = normalize_text(query).lower()
    if not q:
        return taxonomy

    def _prune(node: Node) -> Optional[Node]:
        kept = tuple(c for c in (_prune(ch) for ch in node.children) if c is not None)
        if kept:
            return Node(node.id, node.name, kept)
        if q in node.name.lower():
            return node
        return None

    roots = tuple(r for r in (_prune(root) for root in taxonomy.roots) if r is not None)
    return Taxonomy(roots, taxonomy.levels)


# ----------------- read helpers for rendering -----------------

def _any_selected_below(state: SelectionState, level: int, node: Node) -> bool:
    for child in node.children:
        if state.is_selected(level + 1, child.id) or _any_selected_below(state, level + 1, child):
            return True
    return False


def node_status(taxonomy: Optional[Taxonomy], state: Optional[SelectionState],
                level: int, node_id: str) -> str:
    """checked / partial / unchecked, for tri-state checkboxes."""
    if taxonomy is None or state is None:
        return STATUS_UNCHECKED
    node, _ = taxonomy.locate(level, node_id)
    if state.is_selected(level, node_id):
        return STATUS_CHECKED
    if _any_selected_below(state, level, node):
        return STATUS_PARTIAL
    return STATUS_UNCHECKED


def count_selected(state: Optional[SelectionState]) -> int:
    return len(state.selected_pairs()) if state is not None else 0


def find_inconsistencies(taxonomy: Optional[Taxonomy],
                         state: Optional[SelectionState]) -> List[str]:
    """Describe every node breaking downward or upward consistency (empty when sound)."""
    if taxonomy is None or state is None:
        return []
    problems: List[str] = []
    for level, node, _ in taxonomy.walk():
        if node.is_leaf:
            continue
        selected = state.is_selected(level, node.id)
        children = [state.is_selected(level + 1, c.id) for c in node.children]
        if selected and not all(children):
            problems.append(f"'{node.name}' is selected but not all of its children are")
        elif not selected and all(children):
            problems.append(f"'{node.name}' is not selected although all of its children are")
    return problems
