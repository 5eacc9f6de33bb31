"""
Activity Store - Per-user feed of recent searches and analyses.

Only the newest MAX_ACTIVITIES entries per user are kept.
"""

from medgenius.core.models import Activity, ActivityType
from medgenius.storage.database import Database

MAX_ACTIVITIES = 20


class ActivityStore:
    """Store for user activity entries."""

    def __init__(self, database: Database, max_per_user: int = MAX_ACTIVITIES):
        self.db = database
        self.max_per_user = max_per_user

    async def add(
        self,
        user_id: str,
        type: ActivityType,
        description: str,
        details: str | None = None,
    ) -> Activity:
        """
        Record an activity and prune the user's feed to max_per_user.

        Args:
            user_id: Owner of the activity
            type: Activity kind
            description: Short description shown in the feed
            details: Optional longer text

        Returns:
            The stored activity
        """
        activity = Activity(user_id=user_id, type=type, description=description, details=details)

        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO activities (activity_id, user_id, activity_json)
                VALUES (?, ?, ?)
                """,
                (activity.id, user_id, activity.model_dump_json()),
            )
            await conn.execute(
                """
                DELETE FROM activities
                WHERE user_id = ? AND id NOT IN (
                    SELECT id FROM activities WHERE user_id = ?
                    ORDER BY id DESC LIMIT ?
                )
                """,
                (user_id, user_id, self.max_per_user),
            )

        return activity

    async def list(self, user_id: str, limit: int = MAX_ACTIVITIES) -> list[Activity]:
        """List a user's activities, newest first."""
        rows = await self.db.fetch_all(
            """
            SELECT activity_json FROM activities
            WHERE user_id = ?
            ORDER BY id DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return [Activity.model_validate_json(row["activity_json"]) for row in rows]

    async def clear(self, user_id: str) -> int:
        """Delete all of a user's activities; returns how many were removed."""
        cursor = await self.db.execute(
            "DELETE FROM activities WHERE user_id = ?",
            (user_id,),
        )
        await self.db.commit()
        return cursor.rowcount
