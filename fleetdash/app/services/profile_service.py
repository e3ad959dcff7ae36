"""
Profile Service.

Keeps every auth account paired with a user profile row. Signup creates
the profile straight away; login looks it up with a bounded retry and
falls back to creating it from the signup metadata.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdash.app.core.config import settings
from fleetdash.app.models.auth_account import AuthAccount
from fleetdash.app.models.user import User
from fleetdash.app.models.enums import UserRole, DriverStatus

logger = logging.getLogger("fleetdash.profiles")


def default_profile_name(account: AuthAccount) -> str:
    """Signup name, else the email local part, else "User"."""
    if account.meta_name:
        return account.meta_name
    local_part = (account.email or "").split("@")[0]
    return local_part or "User"


def default_profile_role(account: AuthAccount) -> UserRole:
    try:
        return UserRole(account.meta_role) if account.meta_role else UserRole.DRIVER
    except ValueError:
        return UserRole.DRIVER


class ProfileService:

    @staticmethod
    async def get_profile(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def create_profile(db: AsyncSession, account: AuthAccount) -> User:
        """Insert the profile row for an account (caller commits)."""
        profile = User(
            id=account.id,
            email=account.email,
            name=default_profile_name(account),
            role=default_profile_role(account),
            status=DriverStatus.AVAILABLE,
        )
        db.add(profile)
        await db.flush()
        return profile

    @staticmethod
    async def fetch_with_retry(
        db: AsyncSession,
        user_id: int,
        retries: Optional[int] = None,
        delay_seconds: Optional[float] = None,
    ) -> Optional[User]:
        """
        Look up a profile, retrying a bounded number of times.

        Args:
            db: Database session
            user_id: Account / profile ID
            retries: Attempts (defaults to settings.profile_fetch_retries)
            delay_seconds: Pause between attempts

        Returns:
            The profile, or None once all attempts came back empty
        """
        attempts = settings.profile_fetch_retries if retries is None else retries
        delay = settings.profile_fetch_retry_delay_seconds if delay_seconds is None else delay_seconds

        for attempt in range(1, max(attempts, 1) + 1):
            profile = await ProfileService.get_profile(db, user_id)
            if profile is not None:
                return profile
            logger.info("Profile lookup attempt %s/%s found nothing for user %s", attempt, attempts, user_id)
            if attempt < attempts and delay > 0:
                await asyncio.sleep(delay)
        return None

    @staticmethod
    async def ensure_profile(db: AsyncSession, account: AuthAccount) -> User:
        """
        Return the account's profile, creating it if the lookup comes back empty.

        The caller commits.
        """
        profile = await ProfileService.fetch_with_retry(db, account.id)
        if profile is not None:
            return profile

        logger.warning("Creating missing profile for account %s", account.id)
        return await ProfileService.create_profile(db, account)
