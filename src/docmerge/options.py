"""Merge options module."""

import dataclasses
import enum
import logging

from docmerge.error import BadRequestError


_logger = logging.getLogger(__name__)


class ArrayMerge(enum.StrEnum):
    """How an array in a patch is merged with an existing array."""

    UNION = "union"  # distinct values of both arrays
    CONCAT = "concat"  # existing elements followed by patch elements
    MERGE = "merge"  # same as CONCAT
    REPLACE = "replace"  # patch array replaces existing array


class ObjectMerge(enum.StrEnum):
    """How an object in a patch is merged with an existing object."""

    REPLACE = "replace"
    UPDATE = "update"


class NullMerge(enum.StrEnum):
    """How null values in a patch are handled."""

    IGNORE = "ignore"
    MERGE = "merge"


@dataclasses.dataclass(frozen=True)
class MergeOptions:
    """
    Options that govern how a patch is merged into a document.

    Parameters and attributes:
    • array_merge: how arrays are merged  [UNION]
    • object_merge: how objects are merged  [UPDATE]
    • null_merge: how null values are handled  [IGNORE]
    • filter_name: name of property identifying the object to update  [root object]
    • filter_value: value of property identifying the object to update

    If filter_name is supplied, the patch is applied to the first object in the document,
    searched depth-first, whose filter_name property has the string value filter_value.
    Numeric filter values must be expressed in their string form (e.g. "12").

    Null values in a patch are never applied. NullMerge.MERGE is accepted for compatibility
    with existing callers, but does not change this.
    """

    array_merge: ArrayMerge = ArrayMerge.UNION
    object_merge: ObjectMerge = ObjectMerge.UPDATE
    null_merge: NullMerge = NullMerge.IGNORE
    filter_name: str | None = None
    filter_value: str | None = None

    def __post_init__(self):
        for name, enum_type in (
            ("array_merge", ArrayMerge),
            ("object_merge", ObjectMerge),
            ("null_merge", NullMerge),
        ):
            value = getattr(self, name)
            if isinstance(value, enum.Enum) and not isinstance(value, enum_type):
                raise BadRequestError(f"invalid {name} option: {value!r}")
            try:
                object.__setattr__(self, name, enum_type(str(value).lower()))
            except ValueError as ve:
                raise BadRequestError(f"invalid {name} option: {value!r}") from ve

    def validate(self) -> None:
        """Raise BadRequestError if options are inconsistent."""
        if not self.filter_name and self.filter_value:
            raise BadRequestError("filter_name cannot be empty if filter_value is supplied")
        if self.null_merge is NullMerge.MERGE:
            _logger.warning(
                "null_merge=%s is not applied; null values are ignored", self.null_merge
            )


DEFAULT_OPTIONS = MergeOptions()
