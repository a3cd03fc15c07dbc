from datetime import datetime, timezone
import json

from joli import db


GAME_TYPES = (
    'scavenger_hunt',
    'trivia',
    'guess_the_song',
    'hangman',
    'word_scramble',
    'creative_challenge',
    'truth_or_dare',
    'song_voting',
)
GAME_STATUSES = ('draft', 'active', 'paused', 'completed')
SUBMISSION_STATUSES = ('pending', 'approved', 'rejected')

DEFAULT_SETTINGS = {
    'allowMultipleSubmissions': False,
    'autoApprove': False,
    'defaultPoints': 10,
    'speedBonusEnabled': False,
}


def utcnow():
    """Naive UTC timestamp; SQLite drops tzinfo, so we never store it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


def _loads(raw, default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=False, default='')
    type = db.Column(db.String(32), nullable=False)
    organizer_id = db.Column(db.String(64), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default='draft')
    # Stored upper-case; uniqueness is the store's job
    join_code = db.Column(db.String(16), unique=True, nullable=True, index=True)
    config_json = db.Column(db.Text, nullable=True)  # {"items": [...]}
    settings_json = db.Column(db.Text, nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    started_at = db.Column(db.DateTime, nullable=True)
    paused_at = db.Column(db.DateTime, nullable=True)
    resumed_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    deleted_at = db.Column(db.DateTime, nullable=True)

    submissions = db.relationship('Submission', back_populates='game', lazy='dynamic')
    participants = db.relationship('GameParticipant', back_populates='game', lazy='dynamic')

    @property
    def config(self):
        return _loads(self.config_json, {'items': []})

    @config.setter
    def config(self, value):
        self.config_json = json.dumps(value or {'items': []})

    @property
    def items(self):
        return list(self.config.get('items') or [])

    @property
    def settings(self):
        merged = dict(DEFAULT_SETTINGS)
        merged.update(_loads(self.settings_json, {}))
        return merged

    @settings.setter
    def settings(self, value):
        self.settings_json = json.dumps(value or {})

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'type': self.type,
            'organizerId': self.organizer_id,
            'status': self.status,
            'joinCode': self.join_code,
            'config': self.config,
            'settings': self.settings,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
            'startedAt': _iso(self.started_at),
            'pausedAt': _iso(self.paused_at),
            'resumedAt': _iso(self.resumed_at),
            'completedAt': _iso(self.completed_at),
        }

    def to_public_dict(self):
        """Participant-safe projection: no owner, code, answers or moderation settings."""
        settings = self.settings
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'type': self.type,
            'status': self.status,
            'items': [
                {k: v for k, v in item.items() if k in ('id', 'prompt', 'points', 'timeLimit')}
                for item in self.items
            ],
            'settings': {
                'allowMultipleSubmissions': settings['allowMultipleSubmissions'],
                'speedBonusEnabled': settings['speedBonusEnabled'],
            },
        }


class GameParticipant(db.Model):
    __tablename__ = 'game_participant'
    __table_args__ = (db.UniqueConstraint('game_id', 'user_id', name='uq_game_participant'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    display_name = db.Column(db.String(100), nullable=True)
    joined_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    game = db.relationship('Game', back_populates='participants')

    def to_dict(self):
        return {
            'gameId': self.game_id,
            'userId': self.user_id,
            'displayName': self.display_name,
            'joinedAt': _iso(self.joined_at),
        }


class Submission(db.Model):
    __tablename__ = 'submission'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    # "<game_id>:<user_id>" while the game allows one submission per user, else NULL
    exclusive_key = db.Column(db.String(128), unique=True, nullable=True)
    content = db.Column(db.Text, nullable=True)
    media_json = db.Column(db.Text, nullable=True)
    answer_json = db.Column(db.Text, nullable=True)
    item_id = db.Column(db.String(64), nullable=True)
    selected_item_id = db.Column(db.String(64), nullable=True)
    time_spent_json = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default='pending')
    is_correct = db.Column(db.Boolean, nullable=True)
    computed_points = db.Column(db.Integer, nullable=True)
    points_awarded = db.Column(db.Integer, nullable=False, default=0)
    bonus_points = db.Column(db.Integer, nullable=False, default=0)
    bonus_reason = db.Column(db.String(200), nullable=True)
    bonus_history_json = db.Column(db.Text, nullable=True)
    review_notes = db.Column(db.String(500), nullable=True)
    rejection_reason = db.Column(db.String(500), nullable=True)
    reviewed_by = db.Column(db.String(64), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    is_flagged = db.Column(db.Boolean, nullable=False, default=False)
    flag_reason = db.Column(db.String(500), nullable=True)
    flagged_by = db.Column(db.String(64), nullable=True)
    flagged_at = db.Column(db.DateTime, nullable=True)
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    submitted_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    game = db.relationship('Game', back_populates='submissions')

    @property
    def media(self):
        return _loads(self.media_json, [])

    @media.setter
    def media(self, value):
        self.media_json = json.dumps(list(value or []))

    @property
    def answer(self):
        return _loads(self.answer_json, None)

    @answer.setter
    def answer(self, value):
        self.answer_json = json.dumps(value) if value is not None else None

    @property
    def time_spent(self):
        return _loads(self.time_spent_json, None)

    @time_spent.setter
    def time_spent(self, value):
        self.time_spent_json = json.dumps(value) if value is not None else None

    @property
    def bonus_history(self):
        return _loads(self.bonus_history_json, [])

    @bonus_history.setter
    def bonus_history(self, value):
        self.bonus_history_json = json.dumps(list(value or []))

    @property
    def total_points(self):
        return (self.points_awarded or 0) + (self.bonus_points or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'gameId': self.game_id,
            'userId': self.user_id,
            'content': self.content,
            'media': self.media,
            'answer': self.answer,
            'itemId': self.item_id,
            'selectedItemId': self.selected_item_id,
            'timeSpent': self.time_spent,
            'status': self.status,
            'isCorrect': self.is_correct,
            'computedPoints': self.computed_points,
            'pointsAwarded': self.points_awarded,
            'bonusPoints': self.bonus_points,
            'bonusReason': self.bonus_reason,
            'bonusHistory': self.bonus_history,
            'totalPoints': self.total_points,
            'reviewNotes': self.review_notes,
            'rejectionReason': self.rejection_reason,
            'reviewedBy': self.reviewed_by,
            'reviewedAt': _iso(self.reviewed_at),
            'isFlagged': self.is_flagged,
            'flagReason': self.flag_reason,
            'flaggedAt': _iso(self.flagged_at),
            'submittedAt': _iso(self.submitted_at),
        }
