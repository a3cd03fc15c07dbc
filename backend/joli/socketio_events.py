from flask import current_app, request
from flask_socketio import ConnectionRefusedError, emit, join_room, leave_room
from typing import Any, Dict

from joli.auth import bearer_token, identity_provider
from joli.models import Game
from joli.services import broadcast

# Per-socket identity, keyed by Socket.IO sid
_sid_to_ctx: Dict[str, Dict[str, Any]] = {}

MAX_EMOJI_LENGTH = 16


def _get_sid() -> str:
    return request.sid  # type: ignore


def _token_from(auth):
    if isinstance(auth, dict) and auth.get('token'):
        return str(auth['token'])
    return bearer_token(request.headers.get('Authorization')) or request.args.get('token')


def _identity():
    ctx = _sid_to_ctx.get(_get_sid())
    return ctx['identity'] if ctx else None


def _game_from(data):
    """Resolve ``data['gameId']`` to a live game, emitting ``error`` when it can't."""
    raw = (data or {}).get('gameId') if isinstance(data, dict) else None
    try:
        game_id = int(raw)
    except (TypeError, ValueError):
        emit('error', {'message': 'gameId is required'})
        return None
    game = Game.query.filter_by(id=game_id, is_deleted=False).first()
    if not game:
        emit('error', {'message': 'Game not found'})
        return None
    return game


def handle_connect(auth=None):
    identity = identity_provider().verify(_token_from(auth))
    if identity is None:
        current_app.logger.info("[socket-refused] invalid or missing token")
        raise ConnectionRefusedError('Authentication required')
    _sid_to_ctx[_get_sid()] = {'identity': identity}
    join_room(broadcast.user_room(identity.id))
    current_app.logger.debug(f"[socket-connect] user={identity.id}")
    emit('connected', {'message': 'Connected to /ws', 'userId': identity.id})


def handle_disconnect(reason=None):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx:
        current_app.logger.debug(f"[socket-disconnect] user={ctx['identity'].id}")


def handle_join_game(data):
    game = _game_from(data)
    if game is None:
        return
    room = broadcast.game_room(game.id)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_game(data):
    game = _game_from(data)
    if game is None:
        return
    room = broadcast.game_room(game.id)
    leave_room(room)
    emit('left', {'room': room})


def handle_reaction(data):
    game = _game_from(data)
    if game is None:
        return
    emoji = data.get('emoji')
    if not isinstance(emoji, str) or not emoji.strip() or len(emoji) > MAX_EMOJI_LENGTH:
        emit('error', {'message': 'emoji is required'})
        return
    identity = _identity()
    broadcast.to_game(game.id, broadcast.REACTION_SENT, {
        'gameId': game.id,
        'emoji': emoji.strip(),
        'userId': identity.id if identity else None,
    })


def handle_organizer_action(data):
    game = _game_from(data)
    if game is None:
        return
    identity = _identity()
    if identity is None or game.organizer_id != identity.id:
        emit('error', {'message': 'Only the game organizer can send organizer actions'})
        return
    action = data.get('action')
    if not isinstance(action, str) or not action.strip():
        emit('error', {'message': 'action is required'})
        return
    payload = data.get('payload')
    broadcast.to_game(game.id, broadcast.ORGANIZER_ACTION, {
        'gameId': game.id,
        'action': action.strip(),
        'payload': payload if isinstance(payload, dict) else {},
    })


def handle_ping(data=None):
    emit('pong', data or {})


HANDLERS = (
    ('connect', handle_connect),
    ('disconnect', handle_disconnect),
    ('join_game', handle_join_game),
    ('leave_game', handle_leave_game),
    ('reaction:send', handle_reaction),
    ('organizer:action', handle_organizer_action),
    ('ping', handle_ping),
)


def register_socketio_handlers(testing: bool = False) -> None:
    """Bind every entry of HANDLERS on the /ws namespace.

    The Flask-SocketIO test client connects to '/' unless told otherwise,
    so under testing the same table is bound there as well.
    """
    from joli import socketio

    for event, handler in HANDLERS:
        socketio.on_event(event, handler, namespace=broadcast.NAMESPACE)

    if testing:
        for event, handler in HANDLERS:
            socketio.on_event(event, handler, namespace='/')
