"""
Record validators for collections.

A validator takes a candidate value and returns a list of problems; an
empty list means the value may be persisted. Validators never mutate or
filter the value: one bad record rejects the whole write.

Record-shaped collections describe their records as Pydantic models and
validate through a ``TypeAdapter``; the models only pin the fields a record
must carry and let every other field through untouched.
"""

from collections.abc import Callable, Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, StringConstraints, TypeAdapter, ValidationError

Validator = Callable[[Any], list[str]]

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Error types that mean "no usable value" rather than "wrong value"
_MISSING_TYPES = frozenset({"missing", "string_too_short"})


class Record(BaseModel):
    """Base for collection records. Unknown fields are kept, never stripped."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class TemplateRecord(Record):
    id: NonEmptyStr
    name: NonEmptyStr


class SavedItem(Record):
    templateId: NonEmptyStr
    variantKey: str | None = None


class CustomCloud(Record):
    id: NonEmptyStr
    name: NonEmptyStr


class StatusSymbol(Record):
    id: NonEmptyStr
    symbol: NonEmptyStr


class HousekeepingRule(Record):
    id: NonEmptyStr
    title: NonEmptyStr


def accept_any(value: Any) -> list[str]:
    return []


def require_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return [f"expected a list, got {type(value).__name__}"]
    return []


def require_mapping(value: Any) -> list[str]:
    if not isinstance(value, Mapping):
        return [f"expected an object, got {type(value).__name__}"]
    return []


def _record_problems(errors: list[Any]) -> list[str]:
    """Turn ``ValidationError.errors()`` for a list of records into problems."""
    notes_by_item: dict[Any, list[str]] = {}
    missing: dict[Any, list[str]] = {}
    for error in errors:
        loc = error["loc"]
        if not loc:
            return [f"expected a list, got {type(error['input']).__name__}"]
        index = loc[0]
        notes = notes_by_item.setdefault(index, [])
        if len(loc) == 1:
            notes.append("is not an object")
        elif error["type"] in _MISSING_TYPES or error["input"] is None:
            if index not in missing:
                missing[index] = []
                notes.append("is missing")
            missing[index].append(str(loc[1]))
        else:
            notes.append(f"has an invalid {loc[1]} ({error['msg']})")

    problems = []
    for index, notes in notes_by_item.items():
        for note in notes:
            if note == "is missing":
                note = f"is missing {', '.join(missing[index])}"
            problems.append(f"item {index} {note}")
    return problems


def records(model: type[Record]) -> Validator:
    """
    Build a validator for a list of ``model`` records.

    Example:
        >>> validate = records(TemplateRecord)
        >>> validate([{"id": "t1", "name": "Deck"}, {"id": "t2"}])
        ['item 1 is missing name']
    """
    adapter = TypeAdapter(list[model])

    def validate(value: Any) -> list[str]:
        try:
            adapter.validate_python(value)
        except ValidationError as e:
            return _record_problems(e.errors())
        return []

    return validate


def nullable(inner: Validator) -> Validator:
    """Allow None in addition to whatever ``inner`` accepts."""

    def validate(value: Any) -> list[str]:
        if value is None:
            return []
        return inner(value)

    return validate


def list_or_mapping(value: Any) -> list[str]:
    if isinstance(value, (list, Mapping)):
        return []
    return [f"expected a list or object, got {type(value).__name__}"]


_categories = TypeAdapter(dict[str, list[Any]])


def mapping_of_lists(value: Any) -> list[str]:
    """Validate ``{key: [..]}`` shapes such as cloud categories."""
    try:
        _categories.validate_python(value)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            loc = error["loc"]
            if not loc:
                return [f"expected an object, got {type(error['input']).__name__}"]
            if len(loc) == 1:
                problems.append(f"entry {loc[0]!r} is not a list")
            else:
                problems.append(f"entry {loc[0]!r} has an invalid key")
        return problems
    return []


__all__ = [
    "Validator",
    "Record",
    "TemplateRecord",
    "SavedItem",
    "CustomCloud",
    "StatusSymbol",
    "HousekeepingRule",
    "accept_any",
    "require_list",
    "require_mapping",
    "records",
    "nullable",
    "list_or_mapping",
    "mapping_of_lists",
]
