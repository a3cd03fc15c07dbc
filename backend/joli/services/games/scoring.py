import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

ANSWER_TYPES = frozenset({'trivia', 'guess_the_song', 'hangman', 'word_scramble'})
# Letter-only games compare without any whitespace
WHITESPACE_INSENSITIVE_TYPES = frozenset({'hangman', 'word_scramble'})

Answer = Union[str, Dict[str, str], None]
TimeSpent = Union[int, float, Dict[str, Union[int, float]], None]


@dataclass(frozen=True)
class ScoreResult:
    base_points: int = 0
    speed_bonus: int = 0
    correct_item_ids: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.base_points + self.speed_bonus

    @property
    def is_correct(self) -> bool:
        return bool(self.correct_item_ids)


def normalize_answer(game_type: str, value) -> str:
    text = str(value if value is not None else '').strip().casefold()
    if game_type in WHITESPACE_INSENSITIVE_TYPES:
        text = ''.join(text.split())
    return text


def _answers_by_item(items: List[dict], answer: Answer, item_id: Optional[str]) -> Dict[str, str]:
    if isinstance(answer, dict):
        return {str(k): v for k, v in answer.items()}
    if answer is None or not items:
        return {}
    target = item_id if item_id is not None else items[0].get('id')
    return {str(target): answer}


def _time_for_item(time_spent: TimeSpent, item_id: str, single_target: Optional[str]):
    if isinstance(time_spent, dict):
        return time_spent.get(item_id)
    if time_spent is not None and item_id == single_target:
        return time_spent
    return None


def speed_bonus(time_limit, time_spent, bonus_rate: float) -> int:
    if time_limit is None or time_spent is None:
        return 0
    return int(math.floor(max(0.0, float(time_limit) - float(time_spent)) * bonus_rate))


def score_submission(
    game_type: str,
    items: List[dict],
    answer: Answer,
    *,
    item_id: Optional[str] = None,
    time_spent: TimeSpent = None,
    settings: Optional[dict] = None,
    bonus_rate: float = 0.1,
) -> ScoreResult:
    """Score an answer against the game's configured items.

    Pure: the same inputs always give the same result. Only answer-bearing
    game types can be scored; every other type scores zero and relies on
    moderation to assign points.
    """
    if game_type not in ANSWER_TYPES:
        return ScoreResult()

    settings = settings or {}
    answers = _answers_by_item(items, answer, item_id)
    single_target = None if isinstance(answer, dict) else next(iter(answers), None)

    base = 0
    bonus = 0
    correct = []
    for item in items:
        iid = str(item.get('id'))
        if iid not in answers or item.get('answer') is None:
            continue
        if normalize_answer(game_type, answers[iid]) != normalize_answer(game_type, item['answer']):
            continue
        correct.append(iid)
        base += int(item.get('points') or 0)
        if settings.get('speedBonusEnabled'):
            bonus += speed_bonus(item.get('timeLimit'), _time_for_item(time_spent, iid, single_target), bonus_rate)
    return ScoreResult(base_points=base, speed_bonus=bonus, correct_item_ids=correct)
