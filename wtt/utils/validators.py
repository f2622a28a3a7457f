# wtt/utils/validators.py
from typing import List, Optional, Sequence, TypeVar

from wtt.utils.exceptions import ValidationError

T = TypeVar('T')


def require_non_empty(value: Optional[str], field: str, entity: str) -> str:
    """Validate a required string field."""
    if value is None or not value.strip():
        raise ValidationError(f"{entity} <{field}> must be set and non-empty")
    return value


def reject_client_id(value: Optional[str], entity: str) -> None:
    """Ids are always server-assigned."""
    if value:
        raise ValidationError(
            f"{entity} <id> is assigned by the server and must not be set (got <{value}>)"
        )


def paginate(items: Sequence[T], offset: int = 0, limit: Optional[int] = None) -> List[T]:
    """
    Slice an already sorted collection to [offset, offset + limit).

    An offset past the end yields an empty list; limit=None means "to the end".

    Raises:
        ValidationError: If offset or limit is negative
    """
    if offset < 0:
        raise ValidationError(f"offset must be >= 0 (got {offset})")
    if limit is not None and limit < 0:
        raise ValidationError(f"limit must be >= 0 (got {limit})")

    if limit is None:
        return list(items[offset:])
    return list(items[offset:offset + limit])
