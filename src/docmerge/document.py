"""
Document model module.

A document is a JSON object model value: a tree of dict (object), list (array), str, int,
float, bool and None (null) nodes, as produced by json.loads. Object insertion order is
significant; it determines the order in which a document is traversed.
"""

import collections.abc

from typing import Any, TypeAlias


Document: TypeAlias = Any  # JSON object model value
Object: TypeAlias = dict[str, Any]
Array: TypeAlias = list[Any]

Path: TypeAlias = tuple[str | int, ...]  # keys and indices from root to a node


def is_object(value: Any) -> bool:
    """Return if value is a document object."""
    return isinstance(value, collections.abc.Mapping)


def is_array(value: Any) -> bool:
    """Return if value is a document array."""
    return isinstance(value, list | tuple)


def resolve(root: Document, path: Path) -> Document:
    """
    Return the node at the specified path within a document.

    Parameters:
    • root: document to resolve the path in
    • path: keys and indices leading from the root to the node

    Raises KeyError, IndexError or TypeError if path does not lead to a node.
    """
    node = root
    for segment in path:
        node = node[segment]
    return node
