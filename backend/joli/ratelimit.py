"""Per-caller request limits on the HTTP API.

Flask-Limiter keeps one application-wide window per caller in the storage
named by ``RATELIMIT_STORAGE_URI`` (Redis in production), so every app
instance counts against the same totals. Callers are keyed by identity when
they present a valid bearer token, otherwise by remote address.
"""
import time

from flask import current_app, jsonify, request
from flask_limiter import Limiter
from flask_limiter.errors import RateLimitExceeded

from joli.auth import bearer_token, identity_provider
from joli.errors import RateLimitError

DEFAULT_API_RATE_LIMIT = '100 per 15 minutes'


def request_key():
    identity = identity_provider().verify(bearer_token(request.headers.get('Authorization')))
    if identity is not None:
        return f"user:{identity.id}"
    return f"ip:{request.remote_addr or 'unknown'}"


def api_rate_limit():
    return current_app.config.get('API_RATE_LIMIT', DEFAULT_API_RATE_LIMIT)


limiter = Limiter(request_key, application_limits=[api_rate_limit])


@limiter.request_filter
def outside_api():
    return request.method == 'OPTIONS' or not request.path.startswith('/api')


def _retry_after(exc):
    current = limiter.current_limit
    if current is not None:
        return max(1, int(current.reset_at - time.time()))
    return exc.limit.limit.get_expiry()


def init_rate_limiting(flask_app):
    limiter.init_app(flask_app)

    @flask_app.errorhandler(RateLimitExceeded)
    def handle_rate_limited(exc):
        retry_after = _retry_after(exc)
        flask_app.logger.warning(f"[rate-limit] key={request_key()} retry_after={retry_after}s")
        return jsonify(RateLimitError(retryAfter=retry_after).to_dict()), RateLimitError.status_code
