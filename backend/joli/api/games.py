from flask import Blueprint
from flask_login import current_user, login_required

from joli.api import choice_arg, int_arg, json_body
from joli.auth import CREATE, require_capability
from joli.errors import AuthorizationError, success
from joli.models import GAME_STATUSES, GAME_TYPES, GameParticipant
from joli.services.games import lifecycle
from joli.services.games.analytics import game_analytics
from joli.services.games.join_codes import allocate_join_code, retire_join_code
from joli.services.games.leaderboard import build_leaderboard
from joli.services.submissions.intake import is_participant


games = Blueprint('games', __name__)


@games.route('', methods=['GET'])
@require_capability(CREATE)
def list_games():
    page = int_arg('page', 1)
    limit = int_arg('limit', 20, maximum=100)
    game_type = choice_arg('type', GAME_TYPES)
    status = choice_arg('status', GAME_STATUSES)
    found, pagination = lifecycle.list_games(current_user, game_type, status, page, limit)
    return success({'games': [g.to_dict() for g in found], 'pagination': pagination})


@games.route('', methods=['POST'])
@require_capability(CREATE)
def create_game():
    game = lifecycle.create_game(current_user, json_body())
    return success({'game': game.to_dict()}, 'Game created successfully', 201)


@games.route('/<int:game_id>', methods=['GET'])
@require_capability(CREATE)
def get_game(game_id):
    game = lifecycle.get_owned_game(game_id, current_user)
    return success({'game': game.to_dict()})


@games.route('/<int:game_id>', methods=['PUT'])
@require_capability(CREATE)
def update_game(game_id):
    game = lifecycle.get_owned_game(game_id, current_user)
    game = lifecycle.update_game(game, json_body())
    return success({'game': game.to_dict()}, 'Game updated successfully')


@games.route('/<int:game_id>', methods=['DELETE'])
@require_capability(CREATE)
def delete_game(game_id):
    game = lifecycle.get_owned_game(game_id, current_user)
    lifecycle.delete_game(game)
    return success(message='Game deleted successfully')


@games.route('/<int:game_id>/start', methods=['POST'])
@require_capability(CREATE)
def start_game(game_id):
    game = lifecycle.start_game(lifecycle.get_owned_game(game_id, current_user))
    return success({'game': game.to_dict()}, 'Game started successfully')


@games.route('/<int:game_id>/pause', methods=['POST'])
@require_capability(CREATE)
def pause_game(game_id):
    game = lifecycle.pause_game(lifecycle.get_owned_game(game_id, current_user))
    return success({'game': game.to_dict()}, 'Game paused successfully')


@games.route('/<int:game_id>/resume', methods=['POST'])
@require_capability(CREATE)
def resume_game(game_id):
    game = lifecycle.resume_game(lifecycle.get_owned_game(game_id, current_user))
    return success({'game': game.to_dict()}, 'Game resumed successfully')


@games.route('/<int:game_id>/complete', methods=['POST'])
@require_capability(CREATE)
def complete_game(game_id):
    game = lifecycle.complete_game(lifecycle.get_owned_game(game_id, current_user))
    return success({'game': game.to_dict()}, 'Game completed successfully')


@games.route('/<int:game_id>/join-code', methods=['POST'])
@require_capability(CREATE)
def generate_join_code(game_id):
    """Generate (or replace) the join code. Allowed in any status; joining still needs an active game."""
    game = lifecycle.get_owned_game(game_id, current_user)
    code = allocate_join_code(game)
    return success({'joinCode': code}, 'Join code generated successfully')


@games.route('/<int:game_id>/join-code', methods=['DELETE'])
@require_capability(CREATE)
def remove_join_code(game_id):
    game = lifecycle.get_owned_game(game_id, current_user)
    retire_join_code(game)
    return success(message='Join code removed successfully')


@games.route('/<int:game_id>/analytics', methods=['GET'])
@require_capability(CREATE)
def get_analytics(game_id):
    game = lifecycle.get_owned_game(game_id, current_user)
    analytics = game_analytics(game.submissions.all(), participant_count=game.participants.count())
    return success({'analytics': analytics})


@games.route('/<int:game_id>/leaderboard', methods=['GET'])
@login_required
def get_leaderboard(game_id):
    game = lifecycle.get_live_game(game_id)
    if game.organizer_id != current_user.id and not is_participant(game.id, current_user.id):
        raise AuthorizationError('Access denied')
    names = {p.user_id: p.display_name for p in GameParticipant.query.filter_by(game_id=game.id)}
    entries = build_leaderboard(game.submissions.filter_by(status='approved', is_deleted=False).all(), names)
    return success({'gameId': game.id, 'leaderboard': [e.to_dict() for e in entries]})
