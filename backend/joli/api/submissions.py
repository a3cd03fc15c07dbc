from flask import Blueprint, request
from flask_login import current_user, login_required

from joli.api import choice_arg, int_arg, json_body
from joli.auth import JOIN, MODERATE, require_capability
from joli.errors import success
from joli.models import SUBMISSION_STATUSES
from joli.services.submissions import intake, moderation


submissions = Blueprint('submissions', __name__)


@submissions.route('', methods=['GET'])
@login_required
def list_submissions():
    """Participants see their own submissions; organizers see those for their games."""
    subs, pagination = intake.list_submissions(
        current_user,
        game_id=int_arg('game', None),
        status=choice_arg('status', SUBMISSION_STATUSES),
        participant=request.args.get('participant') or None,
        page=int_arg('page', 1),
        limit=int_arg('limit', 20, maximum=100),
    )
    return success({'submissions': [s.to_dict() for s in subs], 'pagination': pagination})


@submissions.route('', methods=['POST'])
@require_capability(JOIN)
def create_submission():
    sub = intake.create_submission(current_user, json_body())
    return success({'submission': sub.to_dict()}, 'Submission created successfully', 201)


@submissions.route('/<int:submission_id>', methods=['GET'])
@login_required
def get_submission(submission_id):
    sub = intake.get_visible_submission(current_user, submission_id)
    return success({'submission': sub.to_dict()})


@submissions.route('/<int:submission_id>', methods=['DELETE'])
@require_capability(JOIN)
def delete_submission(submission_id):
    intake.delete_submission(current_user, submission_id)
    return success(message='Submission deleted successfully')


@submissions.route('/<int:submission_id>/approve', methods=['PUT'])
@require_capability(MODERATE)
def approve_submission(submission_id):
    data = json_body()
    sub = moderation.get_moderatable_submission(submission_id, current_user)
    sub = moderation.approve(sub, current_user, points=data.get('points'), notes=data.get('notes'))
    return success({'submission': sub.to_dict()}, 'Submission approved successfully')


@submissions.route('/<int:submission_id>/reject', methods=['PUT'])
@require_capability(MODERATE)
def reject_submission(submission_id):
    sub = moderation.get_moderatable_submission(submission_id, current_user)
    sub = moderation.reject(sub, current_user, json_body().get('reason'))
    return success({'submission': sub.to_dict()}, 'Submission rejected successfully')


@submissions.route('/<int:submission_id>/flag', methods=['PUT'])
@require_capability(MODERATE)
def flag_submission(submission_id):
    sub = moderation.get_moderatable_submission(submission_id, current_user)
    sub = moderation.flag(sub, current_user, json_body().get('reason'))
    return success({'submission': sub.to_dict()}, 'Submission flagged successfully')


@submissions.route('/<int:submission_id>/bonus', methods=['PUT'])
@require_capability(MODERATE)
def award_bonus(submission_id):
    data = json_body()
    sub = moderation.get_moderatable_submission(submission_id, current_user)
    sub = moderation.award_bonus(sub, current_user, data.get('points'), data.get('reason'))
    return success({'submission': sub.to_dict()}, 'Bonus points awarded successfully')
