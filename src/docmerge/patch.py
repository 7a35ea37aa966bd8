"""
Document partial modification (patch) module.

A patch is a document object whose properties name the fields to merge into a target
object. Unlike JSON Merge Patch (RFC 7386), arrays and objects are merged according to
merge options, and null values never remove fields.
"""

import logging

from collections.abc import Hashable
from copy import deepcopy
from docmerge.document import Array, Object, is_array, is_object
from docmerge.options import ArrayMerge, MergeOptions, ObjectMerge
from typing import Any


_logger = logging.getLogger(__name__)


def _union_key(value: Any) -> Hashable:
    """Return a key under which values considered equal in a union collide."""
    match value:
        case bool():  # before int; True is not 1
            return (bool, value)
        case int() | float():
            return (float, value)  # 1 == 1.0 with equal hashes
        case str():
            return (str, value)
        case None:
            return (None, None)
        case _ if is_object(value):
            return (dict, frozenset((k, _union_key(v)) for k, v in value.items()))
        case _ if is_array(value):
            return (list, tuple(_union_key(v) for v in value))
        case _:
            raise TypeError(f"not a document value: {value!r}")


def union(existing: Array, incoming: Array) -> Array:
    """
    Return the distinct values of two arrays. Numbers are compared numerically regardless of
    representation, strings exactly, objects and arrays by value. Where values are equal, the
    first one encountered is retained, in the order encountered.
    """
    result = {}
    for value in (*existing, *incoming):
        result.setdefault(_union_key(value), value)
    return list(result.values())


def merge_array(target: Object, name: str, incoming: Array, options: MergeOptions) -> None:
    """Merge an array from a patch into the named property of a target object."""
    existing = target.get(name)
    if not is_array(existing):
        target[name] = deepcopy(incoming)
        return
    match options.array_merge:
        case ArrayMerge.CONCAT | ArrayMerge.MERGE:
            target[name] = [*existing, *deepcopy(incoming)]
        case ArrayMerge.UNION:
            target[name] = union(existing, deepcopy(incoming))
        case ArrayMerge.REPLACE:
            target[name] = deepcopy(incoming)


def merge_object(target: Object, name: str, incoming: Object, options: MergeOptions) -> None:
    """
    Merge an object from a patch into the named property of a target object. An update
    overlays the properties of the incoming object one level deep; nested values are
    replaced, not merged.
    """
    existing = target.get(name)
    if not is_object(existing):
        target[name] = deepcopy(incoming)
        return
    match options.object_merge:
        case ObjectMerge.REPLACE:
            target[name] = deepcopy(incoming)
        case ObjectMerge.UPDATE:
            for key, value in incoming.items():
                existing[key] = deepcopy(value)


def apply(target: Object, patch: Object, options: MergeOptions) -> None:
    """
    Apply a patch to a target object, modifying the target in place.

    Parameters:
    • target: object to be patched
    • patch: object containing fields to merge into target
    • options: options governing how arrays and objects are merged

    If the object merge option is REPLACE, all existing properties of the target are first
    removed. Null values in the patch are skipped. Arrays and objects are merged per options;
    all other values overwrite the corresponding target property.
    """
    if options.object_merge is ObjectMerge.REPLACE:
        target.clear()
    for name, value in patch.items():
        if value is None:
            _logger.debug("skipping null value: %s", name)
        elif is_array(value):
            merge_array(target, name, value, options)
        elif is_object(value):
            merge_object(target, name, value, options)
        else:
            target[name] = value
