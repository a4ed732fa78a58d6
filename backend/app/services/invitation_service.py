import logging
from datetime import datetime, timezone
from typing import Callable, List

from app.db.collections import CONVERSATIONS, INVITATIONS, team_conversation_id
from app.db.store import DocumentStore, FilterOp, Query, Subscription
from app.models.invitation import Invitation, InvitationSender, InvitationStatus
from app.models.profile import Profile
from app.models.team import Team
from app.services.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionFailedError,
)
from app.services.team_service import TeamService

logger = logging.getLogger(__name__)


def _pending_for(user_id: str) -> Query:
    return (
        Query(INVITATIONS)
        .where("to_user_id", FilterOp.EQ, user_id)
        .where("status", FilterOp.EQ, InvitationStatus.PENDING.value)
    )


class InvitationService:
    @staticmethod
    async def send_invitation(
        team: Team, from_user: Profile, to_user: Profile, store: DocumentStore
    ) -> Invitation:
        """Invite ``to_user`` to ``team``.

        Team and sender names are copied onto the invitation and are not
        refreshed if they change later. The duplicate check and the create
        are separate calls, so two simultaneous invites can both land.
        """
        if from_user.id != team.owner_id:
            raise PreconditionFailedError("Only the team owner can send invitations.")
        if to_user.id == from_user.id or team.has_member(to_user.id):
            raise PreconditionFailedError("This user is already on the team.")
        if to_user.team_id:
            raise PreconditionFailedError("This user is already on a team.")

        existing = await store.query(
            _pending_for(to_user.id).where("team_id", FilterOp.EQ, team.id)
        )
        if existing:
            raise PreconditionFailedError(
                "An invitation to this user for this team already exists."
            )

        invitation = Invitation(
            id=store.new_id(),
            team_id=team.id,
            team_name=team.name,
            from_user=InvitationSender(id=from_user.id, name=from_user.name),
            to_user_id=to_user.id,
            status=InvitationStatus.PENDING,
            created_at=datetime.now(timezone.utc),
        )
        await store.set(INVITATIONS, invitation.id, invitation.model_dump(mode="json"))

        logger.info(
            f"User {from_user.id} invited {to_user.id} to team {team.id}"
        )
        return invitation

    @staticmethod
    async def list_pending_invitations(
        user_id: str, store: DocumentStore
    ) -> List[Invitation]:
        return [Invitation(**doc) for doc in await store.query(_pending_for(user_id))]

    @staticmethod
    async def listen_for_invitations(
        user_id: str,
        callback: Callable[[List[Invitation]], None],
        store: DocumentStore,
    ) -> Subscription:
        return await store.subscribe(
            _pending_for(user_id),
            lambda docs: callback([Invitation(**doc) for doc in docs]),
        )

    @staticmethod
    async def resolve_invitation(
        invitation_id: str, accept: bool, user: Profile, store: DocumentStore
    ) -> None:
        """Accept or decline. The invitation is deleted either way; accepting
        also joins the team in the same batch."""
        document = await store.get(INVITATIONS, invitation_id)
        if document is None:
            raise NotFoundError("Invitation not found.")
        invitation = Invitation(**document)

        if invitation.to_user_id != user.id:
            raise PermissionDeniedError("This invitation is addressed to someone else.")

        batch = store.batch()

        if accept:
            if user.team_id:
                raise PreconditionFailedError("You are already on a team.")
            team = await TeamService.get_team(invitation.team_id, store)
            if team is None:
                raise NotFoundError("Team not found.")
            conversation = await store.get(
                CONVERSATIONS, team_conversation_id(team.id)
            )
            TeamService.stage_join(team, user, conversation, batch)

        batch.delete(INVITATIONS, invitation_id)
        await store.commit(batch)

        logger.info(
            f"User {user.id} {'accepted' if accept else 'declined'} "
            f"invitation {invitation_id} to team {invitation.team_id}"
        )
