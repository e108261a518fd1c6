"""
Difficulty / experience levels shared by dive sites, divers and buddy requests.
"""

LEVELS = ["beginner", "intermediate", "advanced", "expert"]

# Sort order for "sortBy=difficulty"
DIFFICULTY_ORDER = {level: index + 1 for index, level in enumerate(LEVELS)}


def difficulty_rank(level: str) -> int:
    """Unknown levels sort after the known ones."""
    return DIFFICULTY_ORDER.get((level or "").lower(), len(LEVELS) + 1)


def format_difficulty(level: str) -> str:
    if not level:
        return "Unknown"
    return level[0].upper() + level[1:]
