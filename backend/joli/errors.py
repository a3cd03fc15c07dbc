"""Error taxonomy for the game engine and the response envelope.

Every engine failure is raised as a ``GameEngineError`` subclass and turned
into ``{success: false, message, errors?}`` by the handlers registered in
``register_error_handlers``. Routes never build error responses by hand.
"""
from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException


class GameEngineError(Exception):
    status_code = 400
    default_message = 'Request failed'

    def __init__(self, message=None, errors=None, **extra):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors
        self.extra = extra

    def to_dict(self):
        payload = {'success': False, 'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        payload.update(self.extra)
        return payload


class ValidationError(GameEngineError):
    status_code = 400
    default_message = 'Validation failed'

    @classmethod
    def for_field(cls, field, message):
        return cls(message, errors=[{'field': field, 'message': message}])


class AuthenticationError(GameEngineError):
    status_code = 401
    default_message = 'Authentication required'


class AuthorizationError(GameEngineError):
    status_code = 403
    default_message = 'Access denied'


class NotFoundError(GameEngineError):
    status_code = 404
    default_message = 'Not found'


class StateConflictError(GameEngineError):
    status_code = 409
    default_message = 'Operation not allowed in the current state'


class ResourceConflictError(GameEngineError):
    status_code = 409
    default_message = 'Resource already exists'


class RateLimitError(GameEngineError):
    status_code = 429
    default_message = 'Too many requests. Please try again later.'


class InternalError(GameEngineError):
    status_code = 500
    default_message = 'Server error'

    def to_dict(self):
        # Detail stays in the logs
        return {'success': False, 'message': InternalError.default_message}


class JoinCodeExhaustedError(InternalError):
    pass


def success(data=None, message=None, status=200):
    payload = {'success': True}
    if message:
        payload['message'] = message
    if data is not None:
        payload['data'] = data
    return jsonify(payload), status


def register_error_handlers(flask_app):
    from joli import db

    @flask_app.errorhandler(GameEngineError)
    def handle_engine_error(exc):
        if isinstance(exc, InternalError):
            flask_app.logger.error(f"[internal-error] {exc.message}", exc_info=exc)
        return jsonify(exc.to_dict()), exc.status_code

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({'success': False, 'message': exc.description or exc.name}), exc.code

    @flask_app.errorhandler(SQLAlchemyError)
    def handle_db_error(exc):
        db.session.rollback()
        flask_app.logger.error(f"[db-error] {exc}", exc_info=exc)
        return jsonify(InternalError().to_dict()), 500

    @flask_app.errorhandler(Exception)
    def handle_unexpected(exc):
        flask_app.logger.error(f"[unhandled] {exc}", exc_info=exc)
        return jsonify(InternalError().to_dict()), 500
