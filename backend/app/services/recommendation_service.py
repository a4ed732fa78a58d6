import logging
from typing import Iterable, List

from app.db.collections import TEAMS
from app.db.store import DocumentStore, FilterOp, Query
from app.models.profile import Profile
from app.models.team import Team, TeamRecommendation

logger = logging.getLogger(__name__)

SKILL_WEIGHT = 2
INTEREST_WEIGHT = 1


def score_team(user: Profile, team: Team) -> TeamRecommendation:
    team_skills = set(team.skills)
    team_interests = set(team.interests)
    common_skills = [s for s in dict.fromkeys(user.skills) if s in team_skills]
    common_interests = [i for i in dict.fromkeys(user.interests) if i in team_interests]

    return TeamRecommendation(
        **team.model_dump(),
        score=SKILL_WEIGHT * len(common_skills) + INTEREST_WEIGHT * len(common_interests),
        common_skills=common_skills,
        common_interests=common_interests,
    )


def recommend_teams(user: Profile, teams: Iterable[Team]) -> List[TeamRecommendation]:
    """Rank teams the user could join by overlap with their skills and
    interests. Teams the user owns or belongs to and teams with no overlap
    are left out; ties keep their input order."""
    candidates = [
        team
        for team in teams
        if team.owner_id != user.id and not team.has_member(user.id)
    ]
    scored = [score_team(user, team) for team in candidates]
    ranked = [team for team in scored if team.score > 0]
    ranked.sort(key=lambda team: team.score, reverse=True)
    return ranked


class RecommendationService:
    @staticmethod
    async def get_recommended_teams(
        user: Profile, store: DocumentStore
    ) -> List[TeamRecommendation]:
        query = Query(TEAMS).where("owner_id", FilterOp.NEQ, user.id)
        teams = [Team(**doc) for doc in await store.query(query)]
        recommendations = recommend_teams(user, teams)
        logger.debug(
            f"Scored {len(teams)} teams for {user.id}, {len(recommendations)} matched"
        )
        return recommendations
