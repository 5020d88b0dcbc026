from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from . import User


async def upsert_user(
    session: AsyncSession,
    user_id: str,
    display_name: Optional[str] = None,
) -> User:
    """Create the learner record, or refresh its display name when it changed."""
    user = await session.get(User, user_id)

    if user is None:
        now = datetime.now(timezone.utc)
        user = User(
            user_id=user_id,
            display_name=display_name,
            created_at=now,
            updated_at=now,
        )
        session.add(user)
        return user

    if display_name is not None and user.display_name != display_name:
        user.display_name = display_name
        user.updated_at = datetime.now(timezone.utc)
        await session.flush()

    return user
