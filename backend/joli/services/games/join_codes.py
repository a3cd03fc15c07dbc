import secrets

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from joli import db
from joli.errors import JoinCodeExhaustedError, NotFoundError
from joli.models import Game, utcnow

# No 0/O or 1/I/L
JOIN_CODE_ALPHABET = 'ABCDEFGHJKMNPQRSTUVWXYZ23456789'
DEFAULT_LENGTH = 6
DEFAULT_MAX_ATTEMPTS = 10


def generate_code(length: int = DEFAULT_LENGTH) -> str:
    return ''.join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def normalize_code(code) -> str:
    return (code or '').strip().upper()


def is_valid_format(code, length: int = DEFAULT_LENGTH) -> bool:
    code = normalize_code(code)
    return len(code) == length and all(ch in JOIN_CODE_ALPHABET for ch in code)


def allocate_join_code(game: Game) -> str:
    """Reserve a fresh code for ``game`` and return it.

    Each candidate is written with a single UPDATE and committed; the unique
    index on ``game.join_code`` rejects collisions, which are retried with a
    new candidate up to ``JOIN_CODE_MAX_ATTEMPTS`` times.
    """
    length = int(current_app.config.get('JOIN_CODE_LENGTH', DEFAULT_LENGTH))
    max_attempts = int(current_app.config.get('JOIN_CODE_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS))
    game_id = game.id

    for attempt in range(1, max_attempts + 1):
        code = generate_code(length)
        try:
            result = db.session.execute(
                update(Game)
                .where(Game.id == game_id, Game.is_deleted.is_(False))
                .values(join_code=code, updated_at=utcnow())
            )
            if result.rowcount == 0:
                db.session.rollback()
                raise NotFoundError('Game not found')
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info(f"[join-code-collision] game={game_id} attempt={attempt}")
            continue
        db.session.refresh(game)
        current_app.logger.info(f"[join-code-set] game={game_id} attempts={attempt}")
        return code

    raise JoinCodeExhaustedError(f'Unable to generate unique join code after {max_attempts} attempts')


def retire_join_code(game: Game, commit: bool = True) -> None:
    """Clear the game's code. Clearing an already-empty code is a no-op."""
    if game.join_code is None:
        return
    current_app.logger.info(f"[join-code-retired] game={game.id} code={game.join_code}")
    game.join_code = None
    db.session.add(game)
    if commit:
        db.session.commit()


def find_game_by_code(code):
    """Resolve a code to a live game, case-insensitively; None when unknown."""
    code = normalize_code(code)
    if not code:
        return None
    return Game.query.filter_by(join_code=code, is_deleted=False).first()
