"""Room-scoped, fire-and-forget event fan-out over Socket.IO.

Callers emit only after their database commit. Delivery is best-effort to
sockets connected right now; a send failure is logged and never raised, so
it cannot fail the request that triggered it.
"""
from flask import current_app

from joli import socketio

NAMESPACE = '/ws'

GAME_STATE_CHANGED = 'game:stateChanged'
SUBMISSION_RECEIVED = 'submission:received'
VOTE_CAST = 'vote:cast'
ANSWER_SUBMITTED = 'answer:submitted'
REACTION_SENT = 'reaction:sent'
ORGANIZER_ACTION = 'organizer:action'
PARTICIPANT_JOINED = 'participant:joined'


def game_room(game_id) -> str:
    return f"game:{game_id}"


def user_room(user_id) -> str:
    return f"user:{user_id}"


def _emit(event: str, payload: dict, room: str) -> bool:
    try:
        socketio.emit(event, payload, to=room, namespace=NAMESPACE)
    except Exception as exc:
        current_app.logger.warning(f"[broadcast-failed] event={event} room={room} error={exc}")
        return False
    current_app.logger.debug(f"[broadcast] event={event} room={room}")
    return True


def to_game(game_id, event: str, payload: dict) -> bool:
    return _emit(event, payload, game_room(game_id))


def to_user(user_id, event: str, payload: dict) -> bool:
    return _emit(event, payload, user_room(user_id))


def game_state_changed(game, previous: str) -> bool:
    return to_game(game.id, GAME_STATE_CHANGED, {'gameId': game.id, 'from': previous, 'to': game.status})


def organizer_action(game_id, action: str, payload: dict = None, user_id=None) -> None:
    body = {'gameId': game_id, 'action': action}
    body.update(payload or {})
    to_game(game_id, ORGANIZER_ACTION, body)
    if user_id is not None:
        to_user(user_id, ORGANIZER_ACTION, body)
