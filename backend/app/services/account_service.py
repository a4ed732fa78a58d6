import logging

from app.db.collections import PROFILES
from app.db.identity import IdentityProvider
from app.db.store import DocumentStore
from app.services.profile_service import ProfileService
from app.services.team_service import TeamService

logger = logging.getLogger(__name__)


class AccountService:
    @staticmethod
    async def delete_account(
        user_id: str, store: DocumentStore, identity: IdentityProvider
    ) -> None:
        """Remove the user from their team, then the profile, then the identity.

        These are three separate writes. The identity provider cannot join a
        document batch, so a failure part-way leaves the team consistent and
        the identity intact; the user retries the deletion. A retry after the
        profile is gone goes straight to the identity step.
        """
        user = await ProfileService.get_profile(user_id, store)
        if user is None:
            logger.info(f"No profile left for {user_id}, deleting identity only")
        else:
            if user.team_id:
                team = await TeamService.get_team(user.team_id, store)
                if team is not None:
                    batch = store.batch()
                    await TeamService.stage_departure(user.id, team, batch, store)
                    await store.commit(batch)
                    logger.info(
                        f"Removed {user.id} from team {team.id} before deletion"
                    )
            await store.delete(PROFILES, user.id)

        await identity.delete_user(user_id)
        logger.info(f"Deleted account {user_id}")
