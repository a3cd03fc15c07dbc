from flask import Blueprint
from flask_login import current_user, login_required
from sqlalchemy import func

from joli import db
from joli.auth import CREATE, require_capability
from joli.errors import success
from joli.models import Game, Submission

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return success({'service': 'joli', 'status': 'ok'}, 'Welcome to the Joli game engine')


@main.route('/api/me')
@login_required
def me():
    return success({'user': current_user.to_dict()})


@main.route('/api/organizer/dashboard')
@require_capability(CREATE)
def organizer_dashboard():
    counts = dict(
        db.session.query(Game.status, func.count(Game.id))
        .filter(Game.organizer_id == current_user.id, Game.is_deleted.is_(False))
        .group_by(Game.status)
        .all()
    )
    pending = (Submission.query.join(Game)
               .filter(Game.organizer_id == current_user.id, Game.is_deleted.is_(False),
                       Submission.is_deleted.is_(False), Submission.status == 'pending')
               .count())
    recent = (Submission.query.join(Game)
              .filter(Game.organizer_id == current_user.id, Game.is_deleted.is_(False),
                      Submission.is_deleted.is_(False))
              .order_by(Submission.submitted_at.desc(), Submission.id.desc())
              .limit(5).all())
    return success({
        'stats': {
            'totalGames': sum(counts.values()),
            'activeGames': counts.get('active', 0),
            'pendingSubmissions': pending,
        },
        'recentActivity': [{
            'id': s.id,
            'type': 'submission',
            'description': f'New submission for {s.game.type}',
            'timestamp': s.submitted_at.isoformat(),
            'gameId': s.game_id,
        } for s in recent],
    })
