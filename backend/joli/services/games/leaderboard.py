from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    total_score: int
    points_awarded: int
    bonus_points: int
    submission_count: int
    first_submitted_at: datetime
    display_name: Optional[str] = None

    def to_dict(self):
        return {
            'rank': self.rank,
            'userId': self.user_id,
            'displayName': self.display_name,
            'totalScore': self.total_score,
            'pointsAwarded': self.points_awarded,
            'bonusPoints': self.bonus_points,
            'submissionCount': self.submission_count,
            'firstSubmittedAt': self.first_submitted_at.isoformat() if self.first_submitted_at else None,
        }


def build_leaderboard(submissions: Iterable, display_names: Optional[Dict[str, str]] = None) -> List[LeaderboardEntry]:
    """Rank users by approved points.

    Order is total score descending, then earliest approved submission, then
    user id, so the same submissions always produce the same ranking.
    """
    display_names = display_names or {}
    totals: Dict[str, dict] = {}
    for sub in submissions:
        if sub.status != 'approved' or getattr(sub, 'is_deleted', False):
            continue
        row = totals.setdefault(sub.user_id, {
            'points': 0, 'bonus': 0, 'count': 0, 'first': sub.submitted_at,
        })
        row['points'] += sub.points_awarded or 0
        row['bonus'] += sub.bonus_points or 0
        row['count'] += 1
        if sub.submitted_at < row['first']:
            row['first'] = sub.submitted_at

    ordered = sorted(
        totals.items(),
        key=lambda kv: (-(kv[1]['points'] + kv[1]['bonus']), kv[1]['first'], kv[0]),
    )
    return [
        LeaderboardEntry(
            rank=position,
            user_id=user_id,
            total_score=row['points'] + row['bonus'],
            points_awarded=row['points'],
            bonus_points=row['bonus'],
            submission_count=row['count'],
            first_submitted_at=row['first'],
            display_name=display_names.get(user_id),
        )
        for position, (user_id, row) in enumerate(ordered, start=1)
    ]
