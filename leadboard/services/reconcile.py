"""
Change-event reconciliation.
Turns one change-feed event into a patch of a locally cached snapshot, giving
the same rows (and order) a full refetch would.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from leadboard.backend.realtime import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)


def _newest_first(rows: list[RowT]) -> list[RowT]:
    # Matches ORDER BY created_at DESC, where NULLs sort first.
    def key(row: BaseModel) -> tuple[bool, datetime]:
        created_at = getattr(row, "created_at", None)
        return (created_at is None, created_at or datetime.min)

    return sorted(rows, key=key, reverse=True)


def reconcile(rows: Sequence[RowT], event: ChangeEvent, model: Type[RowT]) -> Optional[list[RowT]]:
    """
    Apply ``event`` to ``rows``.

    Returns the patched list, or None when the event does not carry enough to
    patch (no row id, or a missing/unparseable record) and a refetch is needed.
    """
    row_id = event.row_id
    if row_id is None:
        return None

    remaining = [row for row in rows if str(getattr(row, "id", "")) != row_id]

    if event.kind is ChangeKind.DELETE:
        return remaining

    if not event.record:
        return None
    try:
        incoming = model.model_validate(event.record)
    except ValidationError:
        logger.debug("Change on %s carried an unparseable record, refetching", event.table)
        return None

    return _newest_first([incoming, *remaining])
