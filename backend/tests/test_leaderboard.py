from datetime import datetime, timedelta
from types import SimpleNamespace

from joli.services.games.leaderboard import build_leaderboard

T0 = datetime(2026, 5, 1, 12, 0, 0)


def _sub(user_id, points, bonus=0, minutes=0, status='approved', is_deleted=False):
    return SimpleNamespace(
        user_id=user_id, points_awarded=points, bonus_points=bonus, status=status,
        is_deleted=is_deleted, submitted_at=T0 + timedelta(minutes=minutes),
    )


def test_ranks_by_total_including_bonus():
    board = build_leaderboard([
        _sub('alice', 10),
        _sub('bob', 10, bonus=5),
        _sub('cara', 12),
    ])
    assert [(e.rank, e.user_id, e.total_score) for e in board] == [
        (1, 'bob', 15), (2, 'cara', 12), (3, 'alice', 10),
    ]


def test_only_approved_live_submissions_count():
    board = build_leaderboard([
        _sub('alice', 10),
        _sub('alice', 50, status='pending'),
        _sub('bob', 40, status='rejected'),
        _sub('cara', 30, is_deleted=True),
    ])
    assert [e.user_id for e in board] == ['alice']
    assert board[0].submission_count == 1


def test_ties_go_to_the_earlier_submitter_then_user_id():
    board = build_leaderboard([
        _sub('zed', 10, minutes=5),
        _sub('amy', 10, minutes=10),
        _sub('bea', 10, minutes=5),
    ])
    assert [e.user_id for e in board] == ['bea', 'zed', 'amy']


def test_points_accumulate_per_user():
    board = build_leaderboard([_sub('alice', 10, minutes=3), _sub('alice', 20, bonus=2, minutes=1)])
    entry = board[0]
    assert (entry.points_awarded, entry.bonus_points, entry.total_score) == (30, 2, 32)
    assert entry.first_submitted_at == T0 + timedelta(minutes=1)


def test_ordering_is_independent_of_input_order():
    subs = [_sub('a', 5, minutes=2), _sub('b', 5, minutes=1), _sub('c', 7), _sub('d', 5, minutes=1)]
    forward = [e.to_dict() for e in build_leaderboard(subs)]
    backward = [e.to_dict() for e in build_leaderboard(list(reversed(subs)))]
    assert forward == backward
    assert [row['userId'] for row in forward] == ['c', 'b', 'd', 'a']


def test_display_names_are_attached():
    board = build_leaderboard([_sub('alice', 1)], {'alice': 'Alice A.'})
    assert board[0].to_dict()['displayName'] == 'Alice A.'
