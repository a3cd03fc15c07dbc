"""Organizer review of submissions.

Status moves pending -> approved or pending -> rejected, once. Flagging is a
separate marker that can be set in any status. Bonus points stack on top of
an approved submission, and every award is kept in ``bonus_history``.
"""
from flask import current_app

from joli import db
from joli.auth import ensure_owner
from joli.errors import NotFoundError, StateConflictError, ValidationError
from joli.models import Submission, utcnow
from joli.services import broadcast


def _required_reason(reason, max_length, message):
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError.for_field('reason', message)
    reason = reason.strip()
    if len(reason) > max_length:
        raise ValidationError.for_field('reason', f'Reason must be {max_length} characters or less')
    return reason


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def get_moderatable_submission(submission_id, identity) -> Submission:
    sub = Submission.query.filter_by(id=submission_id, is_deleted=False).first()
    if not sub or sub.game is None or sub.game.is_deleted:
        raise NotFoundError('Submission not found')
    ensure_owner(sub.game, identity)
    return sub


def _commit_and_notify(sub, action, identity):
    db.session.add(sub)
    db.session.commit()
    current_app.logger.info(
        f"[moderation-{action}] submission={sub.id} game={sub.game_id} by={identity.id} status={sub.status}"
    )
    broadcast.organizer_action(sub.game_id, action, {
        'submissionId': sub.id,
        'status': sub.status,
        'isFlagged': sub.is_flagged,
    }, user_id=sub.user_id)
    return sub


def approve(sub: Submission, identity, points=None, notes=None) -> Submission:
    if points is not None and (not _is_int(points) or points < 0):
        raise ValidationError.for_field('points', 'Points must be a non-negative integer')
    if notes is not None and (not isinstance(notes, str) or len(notes) > 500):
        raise ValidationError.for_field('notes', 'Notes must be 500 characters or less')
    if sub.status == 'approved':
        raise StateConflictError('Submission is already approved')
    if sub.status != 'pending':
        raise StateConflictError(f'Cannot approve a {sub.status} submission')

    sub.status = 'approved'
    sub.points_awarded = points if points is not None else int(sub.game.settings['defaultPoints'])
    sub.review_notes = notes or None
    sub.reviewed_by = identity.id
    sub.reviewed_at = utcnow()
    return _commit_and_notify(sub, 'submission_approved', identity)


def reject(sub: Submission, identity, reason) -> Submission:
    reason = _required_reason(reason, 500, 'Rejection reason is required')
    if sub.status != 'pending':
        raise StateConflictError(f'Cannot reject a {sub.status} submission')

    sub.status = 'rejected'
    sub.points_awarded = 0
    sub.bonus_points = 0
    sub.rejection_reason = reason
    sub.reviewed_by = identity.id
    sub.reviewed_at = utcnow()
    return _commit_and_notify(sub, 'submission_rejected', identity)


def flag(sub: Submission, identity, reason) -> Submission:
    reason = _required_reason(reason, 500, 'Flag reason is required')
    sub.is_flagged = True
    sub.flag_reason = reason
    sub.flagged_by = identity.id
    sub.flagged_at = utcnow()
    return _commit_and_notify(sub, 'submission_flagged', identity)


def award_bonus(sub: Submission, identity, points, reason) -> Submission:
    if not _is_int(points) or points < 1:
        raise ValidationError.for_field('points', 'Bonus points must be a positive integer')
    reason = _required_reason(reason, 200, 'Bonus reason is required')
    if sub.status != 'approved':
        raise StateConflictError('Can only award bonus points to approved submissions')

    awarded_at = utcnow()
    sub.bonus_points = (sub.bonus_points or 0) + points
    sub.bonus_reason = reason
    sub.bonus_history = sub.bonus_history + [{
        'points': points,
        'reason': reason,
        'awardedBy': identity.id,
        'awardedAt': awarded_at.isoformat(),
    }]
    return _commit_and_notify(sub, 'bonus_awarded', identity)
