# shopcore/domain/default_set.py
"""
Kolekcje "dokladnie jeden domyslny" (adresy, metody platnosci, warianty).

Po kazdej operacji niepusta kolekcja ma dokladnie jeden element z
is_default=True, pusta - zero. Funkcje sa czyste: zwracaja nowa liste,
wejscia nie modyfikuja. To jedyne miejsce, w ktorym zmienia sie flaga.
"""
from typing import Any, Sequence, TypeVar

from pydantic import BaseModel

from shopcore.domain.errors import NotFound


class DefaultItem(BaseModel):
    id: str | int
    is_default: bool = False


T = TypeVar("T", bound=DefaultItem)


def _find(items: Sequence[T], item_id) -> T | None:
    return next((item for item in items if item.id == item_id), None)


def current_default(items: Sequence[T]) -> T | None:
    return next((item for item in items if item.is_default), None)


def set_default(items: Sequence[T], target_id) -> list[T]:
    if _find(items, target_id) is None:
        raise NotFound(f"Item {target_id} not found")

    return [item.model_copy(update={"is_default": item.id == target_id}) for item in items]


def add_with_default_policy(items: Sequence[T], new_item: T) -> list[T]:
    if not items or new_item.is_default:
        cleared = [item.model_copy(update={"is_default": False}) for item in items]
        return cleared + [new_item.model_copy(update={"is_default": True})]

    return list(items) + [new_item.model_copy(update={"is_default": False})]


def remove_with_default_policy(items: Sequence[T], item_id) -> list[T]:
    removed = _find(items, item_id)
    if removed is None:
        raise NotFound(f"Item {item_id} not found")

    remaining = [item for item in items if item.id != item_id]

    if removed.is_default and remaining:
        return set_default(remaining, remaining[0].id)
    return remaining


def update_with_default_policy(items: Sequence[T], item_id, changes: dict[str, Any]) -> list[T]:
    """
    Podmienia pola elementu. is_default=True przechodzi przez set_default,
    zdjecie flagi z obecnego domyslnego jest ignorowane - domyslny zmienia
    sie tylko przez wskazanie innego elementu.
    """
    target = _find(items, item_id)
    if target is None:
        raise NotFound(f"Item {item_id} not found")

    changes = dict(changes)
    make_default = changes.pop("is_default", None)
    changes.pop("id", None)

    updated = [
        item.model_copy(update=changes) if item.id == item_id else item
        for item in items
    ]

    if make_default:
        return set_default(updated, item_id)
    return updated
