from datetime import datetime
from types import SimpleNamespace

from joli.services.games.analytics import game_analytics


def _sub(user_id, status, points=0, bonus=0, flagged=False, time_spent=None, day=1, is_deleted=False):
    return SimpleNamespace(
        user_id=user_id, status=status, total_points=points + bonus, is_flagged=flagged,
        time_spent=time_spent, submitted_at=datetime(2026, 5, day, 9, 30), is_deleted=is_deleted,
    )


def test_empty_game_has_zeroed_analytics():
    stats = game_analytics([])
    assert stats['totalSubmissions'] == 0
    assert stats['averagePoints'] == 0
    assert stats['approvalRate'] == 0
    assert stats['submissionsByDay'] == {}


def test_counts_and_averages():
    stats = game_analytics([
        _sub('alice', 'approved', points=10, bonus=5, time_spent=20, day=1),
        _sub('bob', 'approved', points=10, time_spent={'q1': 4, 'q2': 6}, day=2),
        _sub('bob', 'pending', day=2),
        _sub('cara', 'rejected', flagged=True, day=2),
        _sub('dan', 'approved', points=100, is_deleted=True),
    ], participant_count=5)

    assert stats['totalSubmissions'] == 4
    assert stats['approvedSubmissions'] == 2
    assert stats['pendingSubmissions'] == 1
    assert stats['rejectedSubmissions'] == 1
    assert stats['flaggedSubmissions'] == 1
    assert stats['uniqueParticipants'] == 3
    assert stats['joinedParticipants'] == 5
    assert stats['totalPoints'] == 25
    assert stats['averagePoints'] == 6.25
    assert stats['averageTime'] == 15
    assert stats['approvalRate'] == 50
    assert stats['submissionsByDay'] == {'2026-05-01': 1, '2026-05-02': 3}
