import logging

from app.db.collections import CONVERSATIONS, PROFILES, TEAMS, team_conversation_id
from app.db.store import DocumentStore, Query
from app.models.conversation import Conversation
from app.models.profile import Profile, TeamStatus, avatar_initial_for
from app.models.team import Team
from app.services.team_service import (
    compute_team_aggregates,
    member_snapshot,
    participant_for,
)

logger = logging.getLogger(__name__)

DEMO_TEAM_NAME = "Team Innovate"
DEMO_OWNER_ID = "mock-user-6"
DEMO_MEMBER_ID = "mock-user-2"

DEMO_PROFILES = [
    {
        "id": "mock-user-1",
        "name": "Alice Johnson",
        "title": "Aspiring Data Scientist",
        "year": 3,
        "department": "Computer Science",
        "about": "Loves turning messy datasets into clear stories.",
        "skills": ["Python", "Machine Learning", "SQL"],
        "interests": ["AI", "Healthcare", "Data Visualization"],
        "working_preferences": ["Remote", "Async"],
    },
    {
        "id": "mock-user-2",
        "name": "Ben Carter",
        "title": "Frontend Developer",
        "year": 2,
        "department": "Software Engineering",
        "about": "Builds accessible interfaces and cares about design systems.",
        "skills": ["React", "TypeScript", "UI/UX Design"],
        "interests": ["Web Development", "Education", "Open Source"],
        "working_preferences": ["In-person", "Pair programming"],
    },
    {
        "id": "mock-user-3",
        "name": "Chloe Davis",
        "title": "Backend Engineer",
        "year": 4,
        "department": "Computer Science",
        "about": "Enjoys APIs, databases and making things fast.",
        "skills": ["Node.js", "SQL", "Docker"],
        "interests": ["Cloud Computing", "FinTech"],
        "working_preferences": ["Remote", "Evenings"],
    },
    {
        "id": "mock-user-4",
        "name": "David Evans",
        "title": "Product Designer",
        "year": 3,
        "department": "Design",
        "about": "Sketches first, prototypes second, ships third.",
        "skills": ["Figma", "UI/UX Design", "User Research"],
        "interests": ["Education", "Sustainability"],
        "working_preferences": ["In-person", "Weekends"],
    },
    {
        "id": "mock-user-5",
        "name": "Emma Wilson",
        "title": "Mobile Developer",
        "year": 2,
        "department": "Information Systems",
        "about": "Ships small apps that solve campus problems.",
        "skills": ["Flutter", "Firebase", "TypeScript"],
        "interests": ["Mobile Apps", "Healthcare"],
        "working_preferences": ["Hybrid", "Async"],
    },
    {
        "id": "mock-user-6",
        "name": "Frank Green",
        "title": "Full Stack Developer",
        "year": 4,
        "department": "Software Engineering",
        "about": "Happy anywhere in the stack, happiest leading a small team.",
        "skills": ["Python", "React", "Docker"],
        "interests": ["AI", "Web Development", "Open Source"],
        "working_preferences": ["Hybrid", "Agile"],
    },
]


def _demo_profile(data: dict) -> Profile:
    return Profile(
        **data,
        avatar_initial=avatar_initial_for(data["name"]),
        email=f"{data['id']}@students.projectmates.app",
        team_status=TeamStatus.LOOKING,
        profile_complete=True,
    )


class SeedService:
    @staticmethod
    async def seed_demo_data(store: DocumentStore) -> bool:
        """Populate an empty store with demo students and one team.

        Returns False without writing anything when profiles already exist.
        """
        existing = await store.query(Query(PROFILES, limit=1))
        if existing:
            return False

        profiles = {p.id: p for p in (_demo_profile(d) for d in DEMO_PROFILES)}
        owner = profiles[DEMO_OWNER_ID]
        member = profiles[DEMO_MEMBER_ID]

        team_id = store.new_id()
        members = [member_snapshot(owner), member_snapshot(member)]
        skills, interests = compute_team_aggregates(members)
        team = Team(
            id=team_id,
            name=DEMO_TEAM_NAME,
            owner_id=owner.id,
            members=members,
            skills=skills,
            interests=interests,
        )

        for profile in (owner, member):
            profile.team_id = team_id
            profile.team_status = TeamStatus.IN_TEAM
        owner.is_team_owner = True

        conversation = Conversation(
            id=team_conversation_id(team_id),
            participant_ids=[owner.id, member.id],
            participants={p.id: participant_for(p) for p in (owner, member)},
            is_group_chat=True,
            group_name=DEMO_TEAM_NAME,
            team_id=team_id,
        )

        batch = store.batch()
        for profile in profiles.values():
            batch.set(PROFILES, profile.id, profile.model_dump(mode="json"))
        batch.set(TEAMS, team_id, team.model_dump(mode="json"))
        batch.set(CONVERSATIONS, conversation.id, conversation.model_dump(mode="json"))
        await store.commit(batch)

        logger.info(f"Seeded {len(profiles)} demo profiles and team {team_id}")
        return True
