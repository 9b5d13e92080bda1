"""Server-side challenge catalogs. Rewards are never taken from the client."""

from __future__ import annotations

# Fixed XP per difficulty tier; coaches pick a tier, never a raw number.
CHALLENGE_TIER_XP: dict[str, int] = {
    "EASY": 15,
    "MEDIUM": 30,
    "HARD": 60,
    "EPIC": 100,
}

# Arena challenges that can be self-reported (TRUST) or proven by video.
ARENA_CHALLENGES: dict[str, dict[str, str]] = {
    "pushup_master": {"name": "Push-up Master", "category": "Power", "difficulty": "MEDIUM"},
    "squat_challenge": {"name": "Squat Challenge", "category": "Power", "difficulty": "EASY"},
    "burpee_blast": {"name": "Burpee Blast", "category": "Power", "difficulty": "HARD"},
    "abs_of_steel": {"name": "Abs of Steel", "category": "Power", "difficulty": "MEDIUM"},
    "100_kicks": {"name": "100 Kicks Marathon", "category": "Technique", "difficulty": "HARD"},
    "speed_punches": {"name": "Speed Punches", "category": "Technique", "difficulty": "MEDIUM"},
    "horse_stance": {"name": "Iron Horse Stance", "category": "Technique", "difficulty": "MEDIUM"},
    "jump_rope": {"name": "Jump Rope Ninja", "category": "Technique", "difficulty": "EASY"},
    "plank_hold": {"name": "Plank Hold", "category": "Flexibility", "difficulty": "EASY"},
    "touch_toes": {"name": "Touch Your Toes", "category": "Flexibility", "difficulty": "EASY"},
    "wall_sit": {"name": "The Wall Sit", "category": "Flexibility", "difficulty": "MEDIUM"},
    "one_leg_balance": {"name": "One-Leg Balance", "category": "Flexibility", "difficulty": "EASY"},
    "weekly_black_belt_trial": {"name": "Black Belt Trial", "category": "Technique", "difficulty": "EPIC"},
}

FAMILY_CHALLENGES: dict[str, dict[str, str | int]] = {
    # HARD tier (100+ XP)
    "family_pushups": {"name": "Parent vs Kid: Pushups", "base_xp": 100},
    "family_plank": {"name": "Family Plank-Off", "base_xp": 120},
    "family_squat_hold": {"name": "The Squat Showdown", "base_xp": 100},
    # MEDIUM tier (75-99 XP)
    "family_statue": {"name": "The Statue Challenge", "base_xp": 80},
    "family_kicks": {"name": "Kick Count Battle", "base_xp": 90},
    "family_balance": {"name": "Flamingo Stand-Off", "base_xp": 80},
    "family_situps": {"name": "Sit-Up Showdown", "base_xp": 90},
    "family_reaction": {"name": "Reaction Time Test", "base_xp": 85},
    "family_mirror": {"name": "Mirror Challenge", "base_xp": 75},
    # EASY tier (50-74 XP)
    "family_dance": {"name": "Martial Arts Dance-Off", "base_xp": 70},
    "family_stretch": {"name": "Stretch Together", "base_xp": 60},
    "family_breathing": {"name": "Calm Warrior Breathing", "base_xp": 50},
}


def arena_challenge_xp(challenge_type: str) -> int | None:
    """Base XP for an arena challenge, or None when the type is unknown."""
    challenge = ARENA_CHALLENGES.get(challenge_type)
    if challenge is None:
        return None
    return CHALLENGE_TIER_XP[challenge["difficulty"]]
