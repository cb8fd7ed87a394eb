"""
Case-insensitive substring filtering over in-memory entity lists.

Every non-empty criterion must match (AND).  A linear scan, meant for the
small lists a screen holds; the relative order of the input is kept.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

T = TypeVar("T")

Accessor = Callable[[Any], Optional[Any]]


def collect_criteria(form_data: Mapping[str, Any]) -> Dict[str, str]:
    """Keep only the non-blank text values of a submitted filter form, trimmed."""
    criteria = {}
    for name, value in form_data.items():
        if value is None or isinstance(value, bool):
            continue
        term = str(value).strip()
        if term:
            criteria[name] = term
    return criteria


def matches(item: Any, term: str, accessor: Accessor) -> bool:
    """True when the accessor's value for *item* contains *term*, ignoring case."""
    value = accessor(item)
    if value is None:
        return False
    return term.lower() in str(value).lower()


def filter_items(
    items: Iterable[T],
    criteria: Mapping[str, Optional[str]],
    accessors: Mapping[str, Accessor],
) -> List[T]:
    """Return the items satisfying every non-empty criterion."""
    active = []
    for name, term in criteria.items():
        if term is None or term == "":
            continue
        if name not in accessors:
            raise ValueError(f"No accessor defined for filter field '{name}'")
        active.append((term, accessors[name]))

    if not active:
        return list(items)

    # all() stops at the first failing criterion for each item
    return [item for item in items if all(matches(item, t, acc) for t, acc in active)]
