"""Game lifecycle: creation, edits, state transitions and deletion.

States are draft -> active <-> paused, and anything but completed -> completed.
Transitions are written as a compare-and-set UPDATE on the current status, so
two concurrent requests cannot both move the same game.
"""
from flask import current_app
from sqlalchemy import update

from joli import db
from joli.auth import ensure_owner
from joli.errors import NotFoundError, StateConflictError, ValidationError
from joli.models import DEFAULT_SETTINGS, GAME_STATUSES, GAME_TYPES, Game, utcnow
from joli.services import broadcast
from joli.services.games.join_codes import retire_join_code
from joli.services.games.scoring import ANSWER_TYPES

TRANSITIONS = {
    'start': (('draft', 'paused'), 'active'),
    'pause': (('active',), 'paused'),
    'resume': (('paused',), 'active'),
    'complete': (('draft', 'active', 'paused'), 'completed'),
}

CONFLICT_MESSAGES = {
    'start': 'Game cannot be started from current status',
    'pause': 'Only active games can be paused',
    'resume': 'Only paused games can be resumed',
    'complete': 'Game is already completed',
}

BOOLEAN_SETTINGS = ('allowMultipleSubmissions', 'autoApprove', 'speedBonusEnabled')


def _err(errors, field, message):
    errors.append({'field': field, 'message': message})


def _clean_title(data, errors, required):
    if 'title' not in data:
        if required:
            _err(errors, 'title', 'Title is required')
        return None
    title = data.get('title')
    if not isinstance(title, str) or not title.strip():
        _err(errors, 'title', 'Title is required')
        return None
    if len(title.strip()) > 100:
        _err(errors, 'title', 'Title must be 100 characters or less')
    return title.strip()


def _clean_description(data, errors):
    description = data.get('description')
    if description is None:
        return None
    if not isinstance(description, str):
        _err(errors, 'description', 'Description must be a string')
        return None
    if len(description.strip()) > 500:
        _err(errors, 'description', 'Description must be 500 characters or less')
    return description.strip()


def validate_config(game_type, config, default_points):
    """Normalize a per-type config into ``{"items": [...]}`` or collect errors."""
    errors = []
    if not isinstance(config, dict):
        _err(errors, 'config', 'Game configuration is required')
        return None, errors
    items = config.get('items')
    if not isinstance(items, list) or not items:
        _err(errors, 'config.items', 'Game must have at least one item')
        return None, errors

    cleaned = []
    seen = set()
    for index, raw in enumerate(items):
        where = f'config.items[{index}]'
        if not isinstance(raw, dict):
            _err(errors, where, 'Item must be an object')
            continue
        item_id = str(raw.get('id') if raw.get('id') is not None else index + 1)
        if item_id in seen:
            _err(errors, f'{where}.id', f'Duplicate item id {item_id}')
        seen.add(item_id)

        item = {'id': item_id, 'prompt': str(raw.get('prompt') or '')}
        points = raw.get('points', default_points)
        if isinstance(points, bool) or not isinstance(points, int) or points < 0:
            _err(errors, f'{where}.points', 'Points must be a non-negative integer')
        item['points'] = points

        time_limit = raw.get('timeLimit')
        if time_limit is not None and (isinstance(time_limit, bool)
                                       or not isinstance(time_limit, (int, float)) or time_limit <= 0):
            _err(errors, f'{where}.timeLimit', 'Time limit must be a positive number of seconds')
        item['timeLimit'] = time_limit

        answer = raw.get('answer')
        if game_type in ANSWER_TYPES:
            if not isinstance(answer, str) or not answer.strip():
                _err(errors, f'{where}.answer', 'An answer is required for this game type')
            item['answer'] = answer
        elif answer is not None:
            item['answer'] = answer
        cleaned.append(item)

    return {'items': cleaned}, errors


def validate_settings(settings, base=None):
    errors = []
    merged = dict(base or DEFAULT_SETTINGS)
    if settings is None:
        return merged, errors
    if not isinstance(settings, dict):
        _err(errors, 'settings', 'Settings must be an object')
        return merged, errors
    for key in BOOLEAN_SETTINGS:
        if key in settings:
            if not isinstance(settings[key], bool):
                _err(errors, f'settings.{key}', f'{key} must be a boolean')
            else:
                merged[key] = settings[key]
    if 'defaultPoints' in settings:
        value = settings['defaultPoints']
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            _err(errors, 'settings.defaultPoints', 'defaultPoints must be a non-negative integer')
        else:
            merged['defaultPoints'] = value
    return merged, errors


def get_live_game(game_id) -> Game:
    game = Game.query.filter_by(id=game_id, is_deleted=False).first()
    if not game:
        raise NotFoundError('Game not found')
    return game


def get_owned_game(game_id, identity) -> Game:
    game = get_live_game(game_id)
    ensure_owner(game, identity)
    return game


def create_game(identity, data) -> Game:
    data = data or {}
    errors = []
    title = _clean_title(data, errors, required=True)
    description = _clean_description(data, errors)
    game_type = data.get('type')
    if game_type not in GAME_TYPES:
        _err(errors, 'type', 'Valid game type is required')

    base_settings = dict(DEFAULT_SETTINGS, defaultPoints=int(current_app.config.get('DEFAULT_POINTS', 10)))
    settings, setting_errors = validate_settings(data.get('settings'), base_settings)
    errors.extend(setting_errors)
    config = None
    if game_type in GAME_TYPES:
        config, config_errors = validate_config(game_type, data.get('config'), settings['defaultPoints'])
        errors.extend(config_errors)
    if errors:
        raise ValidationError('Validation failed', errors=errors)

    game = Game(
        title=title,
        description=description or '',
        type=game_type,
        organizer_id=identity.id,
        status='draft',
    )
    game.config = config
    game.settings = settings
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[game-create] game={game.id} type={game.type} organizer={identity.id}")
    return game


def update_game(game: Game, data) -> Game:
    data = data or {}
    if game.status == 'completed':
        raise StateConflictError('Completed games cannot be edited')
    errors = []
    for immutable in ('type', 'organizerId', 'status', 'joinCode'):
        if immutable in data:
            _err(errors, immutable, f'{immutable} cannot be changed')
    title = _clean_title(data, errors, required=False)
    description = _clean_description(data, errors)
    settings, setting_errors = validate_settings(data.get('settings'), game.settings)
    errors.extend(setting_errors)
    config = None
    if 'config' in data:
        config, config_errors = validate_config(game.type, data.get('config'), settings['defaultPoints'])
        errors.extend(config_errors)
    if errors:
        raise ValidationError('Validation failed', errors=errors)
    # exclusive_key is only written while the flag is off
    if (game.status != 'draft' and bool(settings.get('allowMultipleSubmissions'))
            != bool((game.settings or {}).get('allowMultipleSubmissions'))):
        raise StateConflictError('allowMultipleSubmissions cannot be changed once the game has started')

    if title is not None:
        game.title = title
    if description is not None:
        game.description = description
    if config is not None:
        game.config = config
    game.settings = settings
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[game-update] game={game.id}")
    return game


def list_games(identity, game_type=None, status=None, page=1, limit=20):
    query = Game.query.filter_by(organizer_id=identity.id, is_deleted=False)
    if game_type:
        query = query.filter_by(type=game_type)
    if status:
        query = query.filter_by(status=status)
    total = query.count()
    games = (query.order_by(Game.created_at.desc(), Game.id.desc())
             .offset((page - 1) * limit).limit(limit).all())
    total_pages = (total + limit - 1) // limit
    return games, {
        'currentPage': page,
        'totalPages': total_pages,
        'totalGames': total,
        'hasNextPage': page < total_pages,
        'hasPrevPage': page > 1,
    }


def transition(game: Game, action: str) -> Game:
    allowed_from, target = TRANSITIONS[action]
    previous = game.status
    if previous not in allowed_from:
        raise StateConflictError(CONFLICT_MESSAGES[action])

    now = utcnow()
    values = {'status': target, 'updated_at': now}
    if action == 'start' and previous == 'draft':
        values['started_at'] = now
    elif action == 'pause':
        values['paused_at'] = now
    elif action in ('start', 'resume'):
        values['resumed_at'] = now
    elif action == 'complete':
        values['completed_at'] = now

    result = db.session.execute(
        update(Game)
        .where(Game.id == game.id, Game.status == previous, Game.is_deleted.is_(False))
        .values(**values)
    )
    if result.rowcount == 0:
        db.session.rollback()
        raise StateConflictError(CONFLICT_MESSAGES[action])
    db.session.commit()
    db.session.refresh(game)

    current_app.logger.info(f"[game-{action}] game={game.id} from={previous} to={target}")
    broadcast.game_state_changed(game, previous)
    return game


def start_game(game):
    return transition(game, 'start')


def pause_game(game):
    return transition(game, 'pause')


def resume_game(game):
    return transition(game, 'resume')


def complete_game(game):
    return transition(game, 'complete')


def delete_game(game: Game) -> None:
    """Soft-delete; the join code is released before the row is marked deleted."""
    retire_join_code(game, commit=False)
    db.session.flush()
    game.is_deleted = True
    game.deleted_at = utcnow()
    db.session.add(game)
    db.session.commit()
    current_app.logger.info(f"[game-delete] game={game.id}")
    broadcast.organizer_action(game.id, 'game_deleted')


def is_valid_status(status) -> bool:
    return status in GAME_STATUSES
