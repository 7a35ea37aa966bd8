"""
Module to locate the object within a document that a patch is applied to.

An object is identified by a filter: a property name and a string value. The document is
searched depth-first, in pre-order, following object property declaration order and array
element order; the first object with a matching property wins. Objects nested in arrays are
searched; arrays nested directly in arrays are not.
"""

import json

from docmerge.document import Document, Object, Path, is_array, is_object, resolve
from typing import Any


def _text(value: Any) -> str | None:
    """Return the string form of a scalar property value for comparison with a filter."""
    match value:
        case str():
            return value
        case bool():
            return "true" if value else "false"
        case float() if value.is_integer():
            return str(int(value))  # 1.0 matches "1"
        case int() | float():
            return json.dumps(value)
        case _:
            return None  # null, objects and arrays never match


def _matches(node: Object, name: str, value: str | None) -> bool:
    if value is None or name not in node:
        return False
    return _text(node[name]) == value


def _search(node: Object, name: str, value: str | None, path: Path) -> Path | None:
    if _matches(node, name, value):
        return path
    for key, child in node.items():
        if is_object(child):
            if (found := _search(child, name, value, (*path, key))) is not None:
                return found
        elif is_array(child):
            for index, element in enumerate(child):
                if is_object(element):
                    found = _search(element, name, value, (*path, key, index))
                    if found is not None:
                        return found
    return None


def find_path(root: Document, name: str | None, value: str | None) -> Path | None:
    """
    Return the path to the first object in a document that satisfies a filter, or None if
    no object satisfies it.

    Parameters:
    • root: document to search
    • name: name of filter property, or None to select the root
    • value: string value of filter property

    Property values are compared as strings: numbers in their JSON form (1 matches "1"),
    booleans as "true" or "false". Null values never match.
    """
    if name is None:
        return ()
    if not is_object(root):
        return None
    return _search(root, name, value, ())


def locate(root: Document, name: str | None, value: str | None) -> Object | None:
    """
    Return the first object in a document that satisfies a filter, or None if no object
    satisfies it. The object returned is the node within the document itself, not a copy.
    """
    path = find_path(root, name, value)
    return resolve(root, path) if path is not None else None
