import os
import sys
import pytest
from flask import g
from flask.testing import FlaskClient

# Ensure the backend root (containing the `joli` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from joli import create_app, db, socketio
from joli.auth import identity_provider


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'
    JOIN_CODE_LENGTH = 6
    JOIN_CODE_MAX_ATTEMPTS = 10
    DEFAULT_POINTS = 10
    SPEED_BONUS_RATE = 0.1
    AUTH_TOKEN_MAX_AGE_SEC = 3600
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    API_RATE_LIMIT = '100 per 15 minutes'


TRIVIA_CONFIG = {'items': [
    {'id': 'q1', 'prompt': 'What is 2 + 2?', 'answer': '4', 'points': 10, 'timeLimit': 30},
    {'id': 'q2', 'prompt': 'Capital of France?', 'answer': 'Paris', 'points': 20},
]}


class FreshIdentityClient(FlaskClient):
    """Forgets the cached login before each request.

    Fixtures keep one app context pushed for the whole test, so Flask-Login's
    g._login_user would otherwise carry over from the previous request.
    """

    def open(self, *args, **kwargs):
        g.pop('_login_user', None)
        return super().open(*args, **kwargs)


def _make_app(config_class):
    application = create_app(config_class)
    application.test_client_class = FreshIdentityClient
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def flask_app():
    yield from _make_app(TestConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def token_for(flask_app):
    def _token(user_id, role, email=None, **profile):
        return identity_provider().issue(user_id, email or f'{user_id}@example.com', role, profile)
    return _token


@pytest.fixture()
def headers_for(token_for):
    def _headers(user_id, role='participant', **profile):
        return {'Authorization': f'Bearer {token_for(user_id, role, **profile)}'}
    return _headers


@pytest.fixture()
def organizer(headers_for):
    return headers_for('org-1', 'organizer', display_name='Olive Organizer')


@pytest.fixture()
def alice(headers_for):
    return headers_for('alice', 'participant', display_name='Alice')


@pytest.fixture()
def bob(headers_for):
    return headers_for('bob', 'participant', display_name='Bob')


@pytest.fixture()
def make_game(client, organizer):
    """Create a game over HTTP and return its JSON representation."""
    def _make(game_type='trivia', config=None, settings=None, title='Friday Quiz'):
        body = {'title': title, 'type': game_type, 'config': config or TRIVIA_CONFIG}
        if settings is not None:
            body['settings'] = settings
        res = client.post('/api/games', json=body, headers=organizer)
        assert res.status_code == 201, res.get_json()
        return res.get_json()['data']['game']
    return _make


@pytest.fixture()
def active_game(client, organizer, make_game):
    """An active game with a join code; returns (game_id, join_code)."""
    def _active(game_type='trivia', config=None, settings=None):
        game = make_game(game_type, config=config, settings=settings)
        code = client.post(f"/api/games/{game['id']}/join-code", headers=organizer).get_json()['data']['joinCode']
        assert client.post(f"/api/games/{game['id']}/start", headers=organizer).status_code == 200
        return game['id'], code
    return _active


@pytest.fixture()
def socket_for(flask_app, token_for):
    clients = []

    def _connect(user_id, role='participant', token=None):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws',
            auth={'token': token if token is not None else token_for(user_id, role)},
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')


@pytest.fixture()
def sio_client(socket_for):
    return socket_for('alice')
