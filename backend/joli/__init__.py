from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from joli.config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))
    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS', [])

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Models and the identity loaders bind to the extensions above
    from joli import models  # noqa: F401
    from joli import auth  # noqa: F401

    from joli.errors import register_error_handlers
    register_error_handlers(flask_app)

    from joli.ratelimit import init_rate_limiting
    init_rate_limiting(flask_app)

    from joli.main import main
    flask_app.register_blueprint(main)

    from joli.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from joli.api.submissions import submissions
    flask_app.register_blueprint(submissions, url_prefix='/api/submissions')

    from joli.api.join import join
    flask_app.register_blueprint(join, url_prefix='/api/join')

    from joli.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo trivia game."""
        from joli.auth import Identity, identity_provider, profile_for_role
        from joli.services.games import lifecycle
        from joli.services.games.join_codes import allocate_join_code

        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            organizer = Identity('demo-organizer', 'organizer@example.com', 'organizer',
                                 profile_for_role('organizer', {'display_name': 'Demo Organizer'}))
            game = lifecycle.create_game(organizer, {
                'title': 'Demo Trivia',
                'description': 'A short warm-up round',
                'type': 'trivia',
                'config': {'items': [
                    {'prompt': 'What is 2 + 2?', 'answer': '4', 'points': 10, 'timeLimit': 30},
                    {'prompt': 'What colour is the sky on a clear day?', 'answer': 'blue', 'points': 10},
                ]},
            })
            code = allocate_join_code(game)
            lifecycle.start_game(game)

            provider = identity_provider()
            print(f'Database has been reset and seeded! Demo game {game.id} join code: {code}')
            print('organizer token: ' + provider.issue(
                organizer.id, organizer.email, 'organizer', {'display_name': 'Demo Organizer'}))
            for n in (1, 2):
                print(f'participant{n} token: ' + provider.issue(
                    f'demo-participant-{n}', f'player{n}@example.com', 'participant',
                    {'display_name': f'Player {n}'}))

    flask_app.cli.add_command(db_reset_command)

    return flask_app
