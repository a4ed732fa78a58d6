import logging
from typing import List, Optional, Tuple

from app.db.collections import CONVERSATIONS, PROFILES, TEAMS, team_conversation_id
from app.db.store import DocumentStore, WriteBatch
from app.models.conversation import Conversation, ConversationParticipant
from app.models.profile import Profile, TeamStatus
from app.models.team import Team, TeamMember
from app.services.exceptions import NotFoundError, PreconditionFailedError

logger = logging.getLogger(__name__)

OWNER_MUST_TRANSFER = (
    "You are the owner. Please transfer ownership or remove other members "
    "before leaving."
)

CLEARED_TEAM_FIELDS = {
    "team_id": None,
    "is_team_owner": False,
    "team_status": TeamStatus.LOOKING.value,
}


def compute_team_aggregates(
    members: List[TeamMember],
) -> Tuple[List[str], List[str]]:
    """Union of member skills and interests, first-seen order."""
    skills = list(dict.fromkeys(s for m in members for s in m.skills))
    interests = list(dict.fromkeys(i for m in members for i in m.interests))
    return skills, interests


def member_snapshot(profile: Profile) -> TeamMember:
    return TeamMember(
        id=profile.id,
        name=profile.name,
        avatar_initial=profile.avatar_initial,
        skills=list(profile.skills),
        interests=list(profile.interests),
    )


def participant_for(profile: Profile) -> ConversationParticipant:
    return ConversationParticipant(
        id=profile.id, name=profile.name, avatar_initial=profile.avatar_initial
    )


def _members_payload(members: List[TeamMember]) -> dict:
    skills, interests = compute_team_aggregates(members)
    return {
        "members": [m.model_dump() for m in members],
        "skills": skills,
        "interests": interests,
    }


class TeamService:
    @staticmethod
    async def create_team(name: str, owner: Profile, store: DocumentStore) -> Team:
        """Create a team owned by ``owner`` along with its group chat."""
        if owner.team_id:
            raise PreconditionFailedError("You are already on a team.")

        team_id = store.new_id()
        members = [member_snapshot(owner)]
        skills, interests = compute_team_aggregates(members)
        team = Team(
            id=team_id,
            name=name,
            owner_id=owner.id,
            members=members,
            skills=skills,
            interests=interests,
        )

        conversation = Conversation(
            id=team_conversation_id(team_id),
            participant_ids=[owner.id],
            participants={owner.id: participant_for(owner)},
            is_group_chat=True,
            group_name=name,
            team_id=team_id,
        )

        batch = store.batch()
        batch.set(TEAMS, team_id, team.model_dump(mode="json"))
        batch.update(
            PROFILES,
            owner.id,
            {
                "team_id": team_id,
                "is_team_owner": True,
                "team_status": TeamStatus.IN_TEAM.value,
            },
        )
        batch.set(CONVERSATIONS, conversation.id, conversation.model_dump(mode="json"))
        await store.commit(batch)

        logger.info(f"User {owner.id} created team {team_id} ({name})")
        return team

    @staticmethod
    async def get_team(team_id: str, store: DocumentStore) -> Optional[Team]:
        document = await store.get(TEAMS, team_id)
        if document is None:
            return None
        return Team(**document)

    @staticmethod
    async def require_team(team_id: str, store: DocumentStore) -> Team:
        team = await TeamService.get_team(team_id, store)
        if team is None:
            raise NotFoundError("Team not found.")
        return team

    @staticmethod
    async def stage_departure(
        user_id: str, team: Team, batch: WriteBatch, store: DocumentStore
    ) -> None:
        """Add the team and chat writes for ``user_id`` leaving ``team``.

        A sole owner dissolves the team; an owner with other members is
        refused; anyone else is dropped from the roster and the chat. The
        caller decides what happens to the user's profile.
        """
        conversation_id = team_conversation_id(team.id)

        if user_id == team.owner_id:
            if len(team.members) > 1:
                raise PreconditionFailedError(OWNER_MUST_TRANSFER)
            batch.delete(TEAMS, team.id)
            batch.delete(CONVERSATIONS, conversation_id)
            return

        remaining = [m for m in team.members if m.id != user_id]
        batch.update(TEAMS, team.id, _members_payload(remaining))

        conversation = await store.get(CONVERSATIONS, conversation_id)
        if conversation is None:
            logger.warning(f"Team {team.id} has no conversation to leave")
            return
        participants = dict(conversation.get("participants") or {})
        participants.pop(user_id, None)
        batch.update(
            CONVERSATIONS,
            conversation_id,
            {
                "participant_ids": [
                    pid for pid in conversation.get("participant_ids", []) if pid != user_id
                ],
                "participants": participants,
            },
        )

    @staticmethod
    def stage_join(
        team: Team,
        profile: Profile,
        conversation: Optional[dict],
        batch: WriteBatch,
    ) -> None:
        members = [m for m in team.members if m.id != profile.id]
        members.append(member_snapshot(profile))
        batch.update(TEAMS, team.id, _members_payload(members))

        batch.update(
            PROFILES,
            profile.id,
            {
                "team_id": team.id,
                "is_team_owner": False,
                "team_status": TeamStatus.IN_TEAM.value,
            },
        )

        if conversation is None:
            logger.warning(f"Team {team.id} has no conversation to join")
            return
        participant_ids = list(conversation.get("participant_ids", []))
        if profile.id not in participant_ids:
            participant_ids.append(profile.id)
        participants = dict(conversation.get("participants") or {})
        participants[profile.id] = participant_for(profile).model_dump()
        batch.update(
            CONVERSATIONS,
            conversation["id"],
            {"participant_ids": participant_ids, "participants": participants},
        )

    @staticmethod
    async def leave_team(user: Profile, team_id: str, store: DocumentStore) -> None:
        team = await TeamService.get_team(team_id, store)

        if team is None:
            # already gone; just put the profile back in a consistent state
            logger.warning(
                f"Team {team_id} missing while {user.id} left; clearing profile"
            )
            await store.update(PROFILES, user.id, CLEARED_TEAM_FIELDS)
            return

        batch = store.batch()
        await TeamService.stage_departure(user.id, team, batch, store)
        batch.update(PROFILES, user.id, CLEARED_TEAM_FIELDS)
        await store.commit(batch)

        logger.info(f"User {user.id} left team {team_id}")
