"""
Users Store - Persistence layer for registered users.

Users are stored as JSON documents keyed by id, with a unique email
column for login lookups.
"""

import sqlite3

from medgenius.core.errors import DuplicateEmailError
from medgenius.core.models import UserRecord
from medgenius.storage.database import Database


class UsersStore:
    """Store for user documents."""

    def __init__(self, database: Database):
        self.db = database

    async def create(self, user: UserRecord) -> UserRecord:
        """
        Persist a new user.

        Raises:
            DuplicateEmailError: a user with this email already exists
        """
        try:
            await self.db.execute(
                """
                INSERT INTO users (user_id, email, user_json)
                VALUES (?, ?, ?)
                """,
                (user.id, user.email, user.model_dump_json()),
            )
        except sqlite3.IntegrityError:
            raise DuplicateEmailError(user.email)

        await self.db.commit()
        return user

    async def get(self, user_id: str) -> UserRecord | None:
        """Get a user by id."""
        row = await self.db.fetch_one(
            "SELECT user_json FROM users WHERE user_id = ?",
            (user_id,),
        )
        if row:
            return UserRecord.model_validate_json(row["user_json"])
        return None

    async def get_by_email(self, email: str) -> UserRecord | None:
        """Get a user by email (case-insensitive)."""
        row = await self.db.fetch_one(
            "SELECT user_json FROM users WHERE email = ?",
            (email.strip().lower(),),
        )
        if row:
            return UserRecord.model_validate_json(row["user_json"])
        return None

    async def count(self) -> int:
        row = await self.db.fetch_one("SELECT COUNT(*) as count FROM users")
        return row["count"] if row else 0
