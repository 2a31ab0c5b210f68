from typing import Any, Dict, List, Tuple

from app.core.errors import ValidationFailed


def sort_items(items: List[Dict[str, Any]], sort: str, fields: Dict[str, str]) -> List[Dict[str, Any]]:
    """
    Sort stored items by a comma-separated list of wire field names, each
    optionally prefixed with "-" for descending, e.g. "-date,amount".
    ``fields`` maps wire names to stored attribute names.
    """
    keys: List[Tuple[str, bool]] = []
    for raw in (part.strip() for part in sort.split(",")):
        if not raw:
            continue
        descending = raw.startswith("-")
        name = raw.lstrip("-+")
        if name not in fields:
            raise ValidationFailed(f"Invalid sort field: {name}")
        keys.append((fields[name], descending))

    result = list(items)
    # apply least significant key first; sorted() is stable
    for attr, descending in reversed(keys):
        result.sort(key=lambda item: (item.get(attr) is None, item.get(attr)), reverse=descending)
    return result


def paginate(items: List[Any], page: int, limit: int) -> List[Any]:
    start = (page - 1) * limit
    return items[start:start + limit]
