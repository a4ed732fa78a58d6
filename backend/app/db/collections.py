PROFILES = "profiles"
TEAMS = "teams"
INVITATIONS = "invitations"
CONVERSATIONS = "conversations"
MESSAGES = "messages"


def team_conversation_id(team_id: str) -> str:
    return f"team_{team_id}"


def direct_conversation_id(user_id: str, other_user_id: str) -> str:
    return "_".join(sorted([user_id, other_user_id]))
