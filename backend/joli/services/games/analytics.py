from collections import Counter


def _numeric_time(value):
    if isinstance(value, dict):
        values = [v for v in value.values() if isinstance(v, (int, float))]
        return sum(values) if values else None
    if isinstance(value, (int, float)):
        return value
    return None


def game_analytics(submissions, participant_count=0):
    """Summary numbers for the organizer's analytics view."""
    subs = [s for s in submissions if not s.is_deleted]
    total = len(subs)
    by_status = Counter(s.status for s in subs)
    flagged = sum(1 for s in subs if s.is_flagged)
    total_points = sum(s.total_points for s in subs)
    times = [t for t in (_numeric_time(s.time_spent) for s in subs) if t is not None]
    by_day = Counter(s.submitted_at.date().isoformat() for s in subs if s.submitted_at)

    return {
        'totalSubmissions': total,
        'approvedSubmissions': by_status.get('approved', 0),
        'pendingSubmissions': by_status.get('pending', 0),
        'rejectedSubmissions': by_status.get('rejected', 0),
        'flaggedSubmissions': flagged,
        'uniqueParticipants': len({s.user_id for s in subs}),
        'joinedParticipants': participant_count,
        'totalPoints': total_points,
        'averagePoints': round(total_points / total, 2) if total else 0,
        'averageTime': round(sum(times) / len(times), 2) if times else 0,
        'approvalRate': round(by_status.get('approved', 0) / total * 100, 2) if total else 0,
        'submissionsByDay': dict(sorted(by_day.items())),
    }
