from __future__ import annotations

from typing import Any

from sqlalchemy import String, literal
from sqlalchemy.dialects.postgresql import insert

from leadboard.config import Settings
from leadboard.models import User
from leadboard.schemas.user import UserRole


def admin_seed_row(settings: Settings) -> dict[str, Any]:
    return {
        "id": settings.admin_user_id,
        "username": settings.admin_username,
        "nama_lengkap": settings.admin_full_name,
        "role": UserRole.SUPERADMIN.value,
        "nomor_wa": settings.admin_whatsapp,
        "aktif": True,
        "avatar": settings.admin_avatar,
    }


def admin_upsert(settings: Settings):
    """INSERT ... ON CONFLICT (id) DO UPDATE for the single administrative user."""
    row = admin_seed_row(settings)
    # Text-typed so the rendered id stays hyphenated.
    stmt = insert(User.__table__).values(**{**row, "id": literal(row["id"], String)})
    return stmt.on_conflict_do_update(
        index_elements=[User.__table__.c.id],
        set_={column: stmt.excluded[column] for column in row if column != "id"},
    )
