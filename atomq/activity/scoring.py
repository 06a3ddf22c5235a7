"""
Scoring rules for live activities.
"""
import math

MAX_POINTS = 1000
POINTS_LOST_PER_SECOND = 50


def calculate_points(is_correct: bool, time_spent: float) -> int:
    """
    Points for one answer: a correct answer is worth 1000, minus 50 for
    every whole second taken, never below zero. Wrong answers earn 0.
    """
    if not is_correct:
        return 0
    return max(0, MAX_POINTS - math.floor(time_spent) * POINTS_LOST_PER_SECOND)


def rank_participants(participants) -> list[dict]:
    """Serialize participants already sorted by score desc, joined_at asc, adding 1-based ranks."""
    ranked = []
    for index, participant in enumerate(participants):
        data = participant.to_dict()
        data["rank"] = index + 1
        ranked.append(data)
    return ranked
