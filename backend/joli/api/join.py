from flask import Blueprint
from flask_login import current_user

from joli.auth import JOIN, require_capability
from joli.errors import success
from joli.services.submissions.intake import join_game, resolve_join_code


join = Blueprint('join', __name__)


@join.route('/<string:code>', methods=['GET'])
def lookup_game(code):
    """Public lookup: returns the participant-safe view of the game behind a code."""
    game = resolve_join_code(code)
    return success({'game': game.to_public_dict()})


@join.route('/<string:code>', methods=['POST'])
@require_capability(JOIN)
def join_by_code(code):
    game, participant, created = join_game(code, current_user)
    message = 'Successfully joined the game' if created else 'Already joined this game'
    return success({'game': game.to_public_dict(), 'participant': participant.to_dict()}, message)
