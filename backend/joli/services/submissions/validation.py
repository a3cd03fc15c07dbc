from dataclasses import dataclass, field
from typing import List

from joli.services.games.scoring import ANSWER_TYPES

TEXT_OR_MEDIA_TYPES = frozenset({'scavenger_hunt', 'creative_challenge', 'truth_or_dare'})
SELECTION_TYPES = frozenset({'song_voting'})

MAX_CONTENT_LENGTH = 1000
MAX_ANSWER_LENGTH = 500
MAX_MEDIA = 5

REQUIRED_MESSAGES = {
    'scavenger_hunt': 'Scavenger hunt submissions require either content or media',
    'creative_challenge': 'Creative challenge submissions require either content or media',
    'truth_or_dare': 'Truth or dare submissions require either content or media',
    'trivia': 'Answer is required for trivia questions',
    'guess_the_song': 'Song guess is required',
    'hangman': 'Word guess is required for hangman',
    'word_scramble': 'Unscrambled word is required',
    'song_voting': 'Song selection is required for song voting',
}


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[dict] = field(default_factory=list)

    def add(self, field_name, message):
        self.valid = False
        self.errors.append({'field': field_name, 'message': message})


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _check_content_and_media(payload, result):
    """Shape checks that apply to every game type; returns the usable parts."""
    content = payload.get('content')
    media = payload.get('media') or []
    if content is not None and not isinstance(content, str):
        result.add('content', 'Content must be text')
        content = None
    if not isinstance(media, list):
        result.add('media', 'Media must be a list of URLs')
        media = []
    usable_media = [m for m in media if not _blank(m)]
    if len(usable_media) != len(media):
        result.add('media', 'Media entries must be non-empty URLs')
    if len(media) > MAX_MEDIA:
        result.add('media', f'At most {MAX_MEDIA} media files are allowed')
    if content and len(content) > MAX_CONTENT_LENGTH:
        result.add('content', f'Text content must be {MAX_CONTENT_LENGTH} characters or less')
    return content, usable_media


def _check_text_or_media(game_type, content, usable_media, result):
    if _blank(content) and not usable_media:
        result.add('content', REQUIRED_MESSAGES[game_type])


def _check_answer(game_type, payload, result):
    answer = payload.get('answer')
    if isinstance(answer, dict):
        if not answer:
            result.add('answer', REQUIRED_MESSAGES[game_type])
        for key, value in answer.items():
            if _blank(value):
                result.add(f'answer.{key}', 'Answer must be non-empty text')
            elif len(value) > MAX_ANSWER_LENGTH:
                result.add(f'answer.{key}', f'Answer must be {MAX_ANSWER_LENGTH} characters or less')
        return
    if _blank(answer):
        result.add('answer', REQUIRED_MESSAGES[game_type])
    elif len(answer) > MAX_ANSWER_LENGTH:
        result.add('answer', f'Answer must be {MAX_ANSWER_LENGTH} characters or less')


def _check_time_spent(payload, result):
    value = payload.get('timeSpent')
    if value is None:
        return
    values = value.values() if isinstance(value, dict) else [value]
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)) or v < 0:
            result.add('timeSpent', 'Time spent must be a non-negative number of seconds')
            return


def validate_submission(game_type, payload) -> ValidationResult:
    """Structural check of a participant payload for ``game_type``.

    Deterministic and storage-free; item membership is checked by the caller.
    """
    result = ValidationResult()
    if not isinstance(payload, dict):
        result.add('payload', 'Submission body must be an object')
        return result

    content, usable_media = _check_content_and_media(payload, result)
    if game_type in TEXT_OR_MEDIA_TYPES:
        _check_text_or_media(game_type, content, usable_media, result)
    elif game_type in ANSWER_TYPES:
        _check_answer(game_type, payload, result)
    elif game_type in SELECTION_TYPES:
        if _blank(payload.get('selectedItemId')):
            result.add('selectedItemId', REQUIRED_MESSAGES[game_type])
    else:
        result.add('gameType', 'Invalid game type')
        return result

    item_id = payload.get('itemId')
    if item_id is not None and _blank(item_id):
        result.add('itemId', 'Item id must be non-empty text')
    _check_time_spent(payload, result)
    return result
