"""
domain.resolver - Free-text reference -> record resolution.

The language model refers to records loosely ("كنبة أستاذ محمد", "محمد").
A record matches when the reference is a substring of any of the given
fields. The FIRST match in collection order wins: no ranking, no
disambiguation, no normalisation beyond Python's `in`. Two records sharing
a substring therefore resolve to whichever comes first.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, TypeVar

from domain.entities import NotepadEntry, Order, PricedMaterial

T = TypeVar("T")


def resolve_first(
    records: Iterable[T],
    reference: str,
    *fields: Callable[[T], str],
) -> Optional[T]:
    """Return the first record whose fields contain *reference*, else None."""
    for record in records:
        for get in fields:
            if reference in (get(record) or ""):
                return record
    return None


def resolve_order(orders: Iterable[Order], reference: str) -> Optional[Order]:
    """Match on order name, then client name."""
    return resolve_first(orders, reference, lambda o: o.name, lambda o: o.client_name)


def resolve_notepad_entry(
    entries: Iterable[NotepadEntry], reference: str,
) -> Optional[NotepadEntry]:
    return resolve_first(entries, reference, lambda e: e.client_name)


def resolve_material(
    materials: Iterable[PricedMaterial], reference: str,
) -> Optional[PricedMaterial]:
    return resolve_first(materials, reference, lambda m: m.name)
