import pytest

from joli import db
from joli.errors import JoinCodeExhaustedError
from joli.models import Game
from joli.services.games import join_codes
from joli.services.games.join_codes import (
    JOIN_CODE_ALPHABET,
    allocate_join_code,
    find_game_by_code,
    generate_code,
    is_valid_format,
    retire_join_code,
)


def _game(title='Quiz'):
    game = Game(title=title, description='', type='trivia', organizer_id='org-1', status='draft')
    game.config = {'items': [{'id': '1', 'prompt': 'Q', 'answer': 'A', 'points': 10}]}
    db.session.add(game)
    db.session.commit()
    return game


def test_generated_codes_use_unambiguous_alphabet():
    for _ in range(200):
        code = generate_code(6)
        assert len(code) == 6
        assert all(ch in JOIN_CODE_ALPHABET for ch in code)
    for ambiguous in '01OIL':
        assert ambiguous not in JOIN_CODE_ALPHABET


def test_format_check_is_case_insensitive_and_strict():
    assert is_valid_format('abc234')
    assert is_valid_format(' ABC234 ')
    assert not is_valid_format('ABC23')
    assert not is_valid_format('ABC2O4')
    assert not is_valid_format(None)


def test_many_games_get_distinct_codes(flask_app):
    codes = {allocate_join_code(_game(f'Quiz {n}')) for n in range(25)}
    assert len(codes) == 25


def test_collision_is_retried_with_a_new_candidate(flask_app, monkeypatch):
    first = _game('First')
    first.join_code = 'AAAAAA'
    db.session.commit()
    second = _game('Second')

    candidates = iter(['AAAAAA', 'AAAAAA', 'BBBBBB'])
    monkeypatch.setattr(join_codes, 'generate_code', lambda length: next(candidates))

    assert allocate_join_code(second) == 'BBBBBB'
    assert second.join_code == 'BBBBBB'
    assert db.session.get(Game, first.id).join_code == 'AAAAAA'


def test_exhausted_attempts_raise(flask_app, monkeypatch):
    flask_app.config['JOIN_CODE_MAX_ATTEMPTS'] = 3
    taken = _game('Taken')
    taken.join_code = 'CCCCCC'
    db.session.commit()
    other = _game('Other')
    calls = []

    def always_taken(length):
        calls.append(length)
        return 'CCCCCC'

    monkeypatch.setattr(join_codes, 'generate_code', always_taken)
    with pytest.raises(JoinCodeExhaustedError):
        allocate_join_code(other)
    assert len(calls) == 3
    assert db.session.get(Game, other.id).join_code is None


def test_lookup_is_case_insensitive_and_retire_is_idempotent(flask_app):
    game = _game()
    code = allocate_join_code(game)

    assert find_game_by_code(code.lower()).id == game.id
    retire_join_code(game)
    retire_join_code(game)
    assert find_game_by_code(code) is None


def test_released_code_can_be_reused(flask_app, monkeypatch):
    first = _game('First')
    monkeypatch.setattr(join_codes, 'generate_code', lambda length: 'DDDDDD')
    allocate_join_code(first)
    retire_join_code(first)

    second = _game('Second')
    assert allocate_join_code(second) == 'DDDDDD'


def test_regenerating_replaces_the_previous_code(client, organizer, make_game, monkeypatch):
    game = make_game()
    candidates = iter(['EEEEEE', 'FFFFFF'])
    monkeypatch.setattr(join_codes, 'generate_code', lambda length: next(candidates))

    first = client.post(f"/api/games/{game['id']}/join-code", headers=organizer).get_json()['data']['joinCode']
    second = client.post(f"/api/games/{game['id']}/join-code", headers=organizer).get_json()['data']['joinCode']

    assert (first, second) == ('EEEEEE', 'FFFFFF')
    assert client.get(f'/api/join/{second}').status_code == 200
    assert client.get(f'/api/join/{first}').status_code == 404


def test_remove_join_code_over_http(client, organizer, make_game):
    game = make_game()
    code = client.post(f"/api/games/{game['id']}/join-code", headers=organizer).get_json()['data']['joinCode']

    assert client.delete(f"/api/games/{game['id']}/join-code", headers=organizer).status_code == 200
    assert client.delete(f"/api/games/{game['id']}/join-code", headers=organizer).status_code == 200
    assert client.get(f'/api/join/{code}').status_code == 404


def test_malformed_code_is_a_validation_error(client):
    res = client.get('/api/join/NOPE')
    assert res.status_code == 400
    assert res.get_json()['success'] is False
