import logging
from typing import List, Optional

from app.db.collections import PROFILES
from app.db.store import DocumentNotFoundError, DocumentStore, FilterOp, Query
from app.models.profile import (
    OnboardingData,
    Profile,
    ProfileUpdate,
    TeamStatus,
    avatar_initial_for,
)
from app.services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

ANY_SKILL = "Any Skill"
ANY_INTEREST = "Any Interest"
ANY_STATUS = "Any"

# legacy availability labels used by older clients
_STATUS_ALIASES = {
    "available": TeamStatus.LOOKING,
    "looking for a team": TeamStatus.LOOKING,
    "in a team": TeamStatus.IN_TEAM,
}


def _team_status_filter(value: Optional[str]) -> Optional[TeamStatus]:
    if not value or value == ANY_STATUS:
        return None
    alias = _STATUS_ALIASES.get(value.lower())
    return alias or TeamStatus(value)


class ProfileService:
    @staticmethod
    async def create_profile(
        user_id: str, name: str, email: str, store: DocumentStore
    ) -> Profile:
        """Create the starting profile for a freshly registered account."""
        profile = Profile(
            id=user_id,
            name=name,
            avatar_initial=avatar_initial_for(name),
            title="New Student",
            year=1,
            about="I'm a new student ready to find a great team for my project!",
            email=email,
            department="Not specified",
            team_status=TeamStatus.LOOKING,
            profile_complete=False,
        )
        await store.set(PROFILES, user_id, profile.model_dump(mode="json"))
        logger.info(f"Created profile for {user_id}")
        return profile

    @staticmethod
    async def get_profile(user_id: str, store: DocumentStore) -> Optional[Profile]:
        document = await store.get(PROFILES, user_id)
        if document is None:
            return None
        return Profile(**document)

    @staticmethod
    async def require_profile(user_id: str, store: DocumentStore) -> Profile:
        profile = await ProfileService.get_profile(user_id, store)
        if profile is None:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile

    @staticmethod
    async def update_profile(
        user_id: str, patch: ProfileUpdate, store: DocumentStore
    ) -> Profile:
        payload = patch.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in payload:
            payload["avatar_initial"] = avatar_initial_for(payload["name"])

        if payload:
            try:
                await store.update(PROFILES, user_id, payload)
            except DocumentNotFoundError:
                raise NotFoundError(f"Profile {user_id} not found")

        return await ProfileService.require_profile(user_id, store)

    @staticmethod
    async def complete_onboarding(
        user_id: str, data: OnboardingData, store: DocumentStore
    ) -> Profile:
        payload = {**data.model_dump(), "profile_complete": True}
        try:
            await store.update(PROFILES, user_id, payload)
        except DocumentNotFoundError:
            raise NotFoundError(f"Profile {user_id} not found")
        return await ProfileService.require_profile(user_id, store)

    @staticmethod
    async def search_profiles(
        requester_id: str,
        store: DocumentStore,
        name: Optional[str] = None,
        skill: Optional[str] = None,
        interest: Optional[str] = None,
        team_status: Optional[str] = None,
    ) -> List[Profile]:
        """Filter profiles by tag and status in the store, then by name here.

        The store cannot do substring matching, so the name filter runs on
        the fetched rows. Results keep the store's natural order.
        """
        query = Query(PROFILES).where("id", FilterOp.NEQ, requester_id)

        if skill and skill != ANY_SKILL:
            query.where("skills", FilterOp.ARRAY_CONTAINS, skill)
        if interest and interest != ANY_INTEREST:
            query.where("interests", FilterOp.ARRAY_CONTAINS, interest)
        status = _team_status_filter(team_status)
        if status is not None:
            query.where("team_status", FilterOp.EQ, status.value)

        profiles = [Profile(**doc) for doc in await store.query(query)]

        if name:
            needle = name.lower()
            profiles = [p for p in profiles if needle in p.name.lower()]

        return profiles

    @staticmethod
    async def get_suggested_teammates(
        user_id: str, limit: int, store: DocumentStore
    ) -> List[Profile]:
        query = (
            Query(PROFILES, limit=limit)
            .where("id", FilterOp.NEQ, user_id)
            .where("team_status", FilterOp.EQ, TeamStatus.LOOKING.value)
        )
        return [Profile(**doc) for doc in await store.query(query)]
