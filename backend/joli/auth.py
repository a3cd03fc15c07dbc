"""Identity, per-role profiles and capability checks.

Authentication itself belongs to an external identity provider; this module
only turns a bearer token into an ``Identity``. The bundled provider verifies
timed tokens signed with the app's ``SECRET_KEY``.
"""
from dataclasses import asdict, dataclass, fields
from functools import wraps
from typing import Optional, Union

from flask import current_app, request
from flask_login import UserMixin, current_user, login_required
from itsdangerous import BadData, URLSafeTimedSerializer

from joli import login_manager
from joli.errors import AuthenticationError, AuthorizationError

CREATE = 'create'
MODERATE = 'moderate'
JOIN = 'join'

ROLE_CAPABILITIES = {
    'organizer': frozenset({CREATE, MODERATE}),
    'participant': frozenset({JOIN}),
}

TOKEN_SALT = 'joli-identity'


@dataclass(frozen=True)
class OrganizerProfile:
    display_name: str = ''
    organization_name: str = ''
    website: str = ''


@dataclass(frozen=True)
class ParticipantProfile:
    display_name: str = ''
    avatar_url: str = ''


Profile = Union[OrganizerProfile, ParticipantProfile]

PROFILE_BY_ROLE = {
    'organizer': OrganizerProfile,
    'participant': ParticipantProfile,
}


def profile_for_role(role: str, data: Optional[dict]) -> Profile:
    """Build the fixed profile variant for ``role``, dropping unknown keys."""
    cls = PROFILE_BY_ROLE.get(role)
    if cls is None:
        raise ValueError(f'Unknown role: {role}')
    known = {f.name for f in fields(cls)}
    return cls(**{k: str(v) for k, v in (data or {}).items() if k in known and v is not None})


class Identity(UserMixin):
    def __init__(self, user_id: str, email: str, role: str, profile: Optional[Profile] = None):
        self.id = user_id
        self.email = email
        self.role = role
        self.profile = profile or profile_for_role(role, {})

    @property
    def capabilities(self):
        return ROLE_CAPABILITIES.get(self.role, frozenset())

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    @property
    def display_name(self) -> str:
        return self.profile.display_name or self.email

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'capabilities': sorted(self.capabilities),
            'profile': asdict(self.profile),
        }


class SignedTokenIdentityProvider:
    def __init__(self, secret_key: str, max_age: int):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)
        self._max_age = max_age

    def issue(self, user_id: str, email: str, role: str, profile: Optional[dict] = None) -> str:
        return self._serializer.dumps({'sub': user_id, 'email': email, 'role': role, 'profile': profile or {}})

    def verify(self, token: str) -> Optional[Identity]:
        if not token:
            return None
        try:
            claims = self._serializer.loads(token, max_age=self._max_age)
        except BadData:
            return None
        role = claims.get('role')
        if role not in ROLE_CAPABILITIES or not claims.get('sub'):
            return None
        return Identity(
            user_id=str(claims['sub']),
            email=claims.get('email') or '',
            role=role,
            profile=profile_for_role(role, claims.get('profile')),
        )


def identity_provider():
    provider = current_app.extensions.get('identity_provider')
    if provider is None:
        provider = SignedTokenIdentityProvider(
            current_app.config['SECRET_KEY'],
            int(current_app.config.get('AUTH_TOKEN_MAX_AGE_SEC', 7 * 24 * 3600)),
        )
        current_app.extensions['identity_provider'] = provider
    return provider


def bearer_token(header: Optional[str]) -> Optional[str]:
    if header and header.startswith('Bearer '):
        return header[7:].strip() or None
    return None


@login_manager.request_loader
def load_identity_from_request(req):
    return identity_provider().verify(bearer_token(req.headers.get('Authorization')))


@login_manager.unauthorized_handler
def unauthorized():
    raise AuthenticationError('No token provided' if not request.headers.get('Authorization')
                              else 'Invalid or expired token')


def require_capability(capability):
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if not current_user.can(capability):
                raise AuthorizationError('Access denied - insufficient permissions')
            return view(*args, **kwargs)
        return wrapped
    return decorator


def ensure_owner(game, identity=None):
    identity = identity or current_user
    if game.organizer_id != identity.id:
        raise AuthorizationError('Access denied')
