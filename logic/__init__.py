# logic package
from .selection import (
    Node,
    Taxonomy,
    SelectionState,
    NotFoundError,
    toggle,
    set_selected,
    flatten,
    remove_by_label,
    reverse_apply,
    filter_tree,
    node_status,
)
from .taxonomy import (
    build_taxonomy,
    taxonomy_from_dataframe,
    truncate,
    load_reference_taxonomy
)

__all__ = [
    'Node',
    'Taxonomy',
    'SelectionState',
    'NotFoundError',
    'toggle',
    'set_selected',
    'flatten',
    'remove_by_label',
    'reverse_apply',
    'filter_tree',
    'node_status',
    'build_taxonomy',
    'taxonomy_from_dataframe',
    'truncate',
    'load_reference_taxonomy'
]
