"""Participant-side flow: joining a game by code and submitting to it."""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from joli import db
from joli.errors import (
    AuthorizationError,
    NotFoundError,
    ResourceConflictError,
    StateConflictError,
    ValidationError,
)
from joli.models import Game, GameParticipant, Submission, utcnow
from joli.services import broadcast
from joli.services.games.join_codes import find_game_by_code, is_valid_format
from joli.services.games.lifecycle import get_live_game
from joli.services.games.scoring import ANSWER_TYPES, score_submission
from joli.services.submissions.validation import validate_submission


def resolve_join_code(code) -> Game:
    length = int(current_app.config.get('JOIN_CODE_LENGTH', 6))
    if not is_valid_format(code, length):
        raise ValidationError.for_field('code', 'Invalid join code format')
    game = find_game_by_code(code)
    if not game or game.status == 'completed':
        raise NotFoundError('Game not found or join code is invalid')
    return game


def join_game(code, identity):
    """Add ``identity`` to the game behind ``code``; joining twice is a no-op."""
    game = resolve_join_code(code)
    if game.status != 'active':
        raise StateConflictError('This game is not currently accepting participants')

    participant = GameParticipant(game_id=game.id, user_id=identity.id, display_name=identity.display_name)
    db.session.add(participant)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = GameParticipant.query.filter_by(game_id=game.id, user_id=identity.id).first()
        return game, existing, False

    current_app.logger.info(f"[game-join] game={game.id} user={identity.id}")
    broadcast.to_game(game.id, broadcast.PARTICIPANT_JOINED, {
        'gameId': game.id,
        'userId': identity.id,
        'displayName': participant.display_name,
    })
    return game, participant, True


def is_participant(game_id, user_id) -> bool:
    return GameParticipant.query.filter_by(game_id=game_id, user_id=user_id).first() is not None


def _parse_game_id(value):
    if isinstance(value, bool):
        raise ValidationError.for_field('gameId', 'Valid game ID is required')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError.for_field('gameId', 'Valid game ID is required')


def _check_item_references(game, data):
    item_ids = {str(item['id']) for item in game.items}
    errors = []
    if data.get('itemId') is not None and str(data['itemId']) not in item_ids:
        errors.append({'field': 'itemId', 'message': 'Unknown item'})
    if game.type == 'song_voting' and str(data.get('selectedItemId')) not in item_ids:
        errors.append({'field': 'selectedItemId', 'message': 'Unknown item'})
    answer = data.get('answer')
    if isinstance(answer, dict):
        for key in answer:
            if str(key) not in item_ids:
                errors.append({'field': f'answer.{key}', 'message': 'Unknown item'})
    if errors:
        raise ValidationError('Invalid submission', errors=errors)


def create_submission(identity, data) -> Submission:
    data = data or {}
    game = get_live_game(_parse_game_id(data.get('gameId')))
    if data.get('gameType') is not None and data['gameType'] != game.type:
        raise ValidationError.for_field('gameType', 'Game type does not match the game')
    if game.status != 'active':
        raise StateConflictError('Game is not currently active')
    if not is_participant(game.id, identity.id):
        raise AuthorizationError('You must join this game before submitting')

    result = validate_submission(game.type, data)
    if not result.valid:
        raise ValidationError('Invalid submission', errors=result.errors)
    _check_item_references(game, data)

    settings = game.settings
    sub = Submission(
        game_id=game.id,
        user_id=identity.id,
        content=(data.get('content') or '').strip() or None,
        item_id=str(data['itemId']) if data.get('itemId') is not None else None,
        selected_item_id=str(data['selectedItemId']) if data.get('selectedItemId') is not None else None,
        status='pending',
        points_awarded=0,
        bonus_points=0,
    )
    sub.media = [m.strip() for m in (data.get('media') or [])]
    sub.answer = data.get('answer')
    sub.time_spent = data.get('timeSpent')
    if not settings['allowMultipleSubmissions']:
        sub.exclusive_key = f"{game.id}:{identity.id}"

    score = None
    if game.type in ANSWER_TYPES:
        score = score_submission(
            game.type,
            game.items,
            data.get('answer'),
            item_id=sub.item_id,
            time_spent=data.get('timeSpent'),
            settings=settings,
            bonus_rate=float(current_app.config.get('SPEED_BONUS_RATE', 0.1)),
        )
        sub.is_correct = score.is_correct
        sub.computed_points = score.total

    # Votes need no review
    if settings['autoApprove'] or game.type == 'song_voting':
        sub.status = 'approved'
        sub.points_awarded = score.total if score is not None else settings['defaultPoints']
        sub.reviewed_at = utcnow()

    db.session.add(sub)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.info(f"[submission-duplicate] game={game.id} user={identity.id}")
        raise ResourceConflictError('You have already submitted for this game')

    current_app.logger.info(
        f"[submission-create] submission={sub.id} game={game.id} user={identity.id} status={sub.status}"
    )
    broadcast.to_game(game.id, broadcast.SUBMISSION_RECEIVED, {
        'gameId': game.id,
        'submissionId': sub.id,
        'userId': identity.id,
        'status': sub.status,
    })
    if game.type == 'song_voting':
        broadcast.to_game(game.id, broadcast.VOTE_CAST, {
            'gameId': game.id,
            'itemId': sub.selected_item_id,
            'userId': identity.id,
        })
    elif game.type in ANSWER_TYPES:
        answer = data.get('answer')
        broadcast.to_game(game.id, broadcast.ANSWER_SUBMITTED, {
            'gameId': game.id,
            'itemIds': sorted(answer) if isinstance(answer, dict) else [sub.item_id or game.items[0]['id']],
            'userId': identity.id,
            'hasAnswered': True,
        })
    return sub


def get_visible_submission(identity, submission_id) -> Submission:
    sub = Submission.query.filter_by(id=submission_id, is_deleted=False).first()
    if not sub or sub.game is None or sub.game.is_deleted:
        raise NotFoundError('Submission not found')
    if sub.user_id != identity.id and sub.game.organizer_id != identity.id:
        raise AuthorizationError('Access denied')
    return sub


def list_submissions(identity, game_id=None, status=None, participant=None, page=1, limit=20):
    query = Submission.query.join(Game).filter(Submission.is_deleted.is_(False), Game.is_deleted.is_(False))
    if identity.role == 'organizer':
        query = query.filter(Game.organizer_id == identity.id)
        if participant:
            query = query.filter(Submission.user_id == participant)
    else:
        query = query.filter(Submission.user_id == identity.id)
    if game_id is not None:
        query = query.filter(Submission.game_id == game_id)
    if status:
        query = query.filter(Submission.status == status)
    total = query.count()
    subs = (query.order_by(Submission.submitted_at.desc(), Submission.id.desc())
            .offset((page - 1) * limit).limit(limit).all())
    return subs, {'current': page, 'pages': (total + limit - 1) // limit, 'total': total}


def delete_submission(identity, submission_id) -> None:
    sub = get_visible_submission(identity, submission_id)
    if sub.user_id != identity.id:
        raise AuthorizationError('Only the submitter can delete a submission')
    if sub.status != 'pending':
        raise StateConflictError('Only pending submissions can be deleted')
    sub.is_deleted = True
    sub.exclusive_key = None
    db.session.add(sub)
    db.session.commit()
    current_app.logger.info(f"[submission-delete] submission={sub.id} user={identity.id}")
