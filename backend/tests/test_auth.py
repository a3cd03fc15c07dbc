import pytest

from joli.auth import (
    CREATE,
    JOIN,
    MODERATE,
    Identity,
    OrganizerProfile,
    ParticipantProfile,
    SignedTokenIdentityProvider,
    profile_for_role,
)


def test_capabilities_by_role():
    organizer = Identity('o', 'o@example.com', 'organizer')
    participant = Identity('p', 'p@example.com', 'participant')
    assert organizer.can(CREATE) and organizer.can(MODERATE) and not organizer.can(JOIN)
    assert participant.can(JOIN) and not participant.can(CREATE)


def test_profiles_are_fixed_per_role():
    org = profile_for_role('organizer', {'display_name': 'Olive', 'organization_name': 'Acme', 'avatar_url': 'x'})
    assert org == OrganizerProfile(display_name='Olive', organization_name='Acme')
    part = profile_for_role('participant', {'avatar_url': 'https://img.example.com/a.png'})
    assert isinstance(part, ParticipantProfile)
    with pytest.raises(ValueError):
        profile_for_role('admin', {})


def test_display_name_falls_back_to_email():
    assert Identity('p', 'p@example.com', 'participant').display_name == 'p@example.com'


def test_token_round_trip_and_tampering():
    provider = SignedTokenIdentityProvider('secret', 60)
    token = provider.issue('alice', 'alice@example.com', 'participant', {'display_name': 'Alice'})
    identity = provider.verify(token)
    assert (identity.id, identity.role, identity.display_name) == ('alice', 'participant', 'Alice')
    assert provider.verify(token + 'x') is None
    assert SignedTokenIdentityProvider('other', 60).verify(token) is None
    assert provider.verify(provider.issue('eve', 'eve@example.com', 'admin')) is None
    assert provider.verify(None) is None


def test_me_requires_a_token(client):
    res = client.get('/api/me')
    assert res.status_code == 401
    assert res.get_json() == {'success': False, 'message': 'No token provided'}

    res = client.get('/api/me', headers={'Authorization': 'Bearer nonsense'})
    assert res.status_code == 401
    assert res.get_json()['message'] == 'Invalid or expired token'


def test_me_returns_identity(client, organizer):
    user = client.get('/api/me', headers=organizer).get_json()['data']['user']
    assert user['id'] == 'org-1'
    assert user['role'] == 'organizer'
    assert user['capabilities'] == ['create', 'moderate']
    assert user['profile']['display_name'] == 'Olive Organizer'


def test_index_and_unknown_routes(client):
    assert client.get('/').get_json()['success'] is True
    res = client.get('/api/nowhere')
    assert res.status_code == 404
    assert res.get_json()['success'] is False


def test_each_request_resolves_its_own_identity(client, organizer, alice):
    assert client.get('/api/me', headers=organizer).get_json()['data']['user']['id'] == 'org-1'
    assert client.get('/api/me', headers=alice).get_json()['data']['user']['id'] == 'alice'
    assert client.get('/api/me').status_code == 401
