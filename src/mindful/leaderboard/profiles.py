"""Profile directory — the roster the leaderboard is built from."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mindful.db.models import Profile

REQUIRED_FIELDS = ("first_name", "last_name", "grade", "school_name")


class DirectoryUnavailable(Exception):
    """The profile roster could not be loaded."""


class ProfileDirectory(Protocol):
    async def list_profiles(self) -> list[Profile]: ...


class SqlProfileDirectory:
    """Reads `profiles` in account-creation order."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_profiles(self) -> list[Profile]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(Profile).order_by(Profile.created_at.asc(), Profile.id.asc())
                )
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            raise DirectoryUnavailable(str(exc)) from exc


def is_eligible(profile: Profile) -> bool:
    """Only profiles with a name, grade, and school appear on the leaderboard."""
    return all((getattr(profile, name) or "").strip() for name in REQUIRED_FIELDS)
