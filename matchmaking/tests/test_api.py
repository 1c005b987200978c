# matchmaking/tests/test_api.py

import pytest

from matchmaking.services import MatchService
from messaging.models import Message

pytestmark = pytest.mark.django_db


@pytest.fixture
def seeker(make_user):
    return make_user(
        gender='female', age=25, location=(0.0, 0.0),
        genders=['male'], min_age=20, max_age=35
    )


@pytest.fixture
def matched_pair(make_user):
    alice, bob = make_user(gender='female'), make_user(gender='male')
    MatchService.record_swipe(alice, bob.id, True)
    match, _ = MatchService.record_swipe(bob, alice.id, True)
    return alice, bob, match


def test_swipe_requires_authentication(api_client):
    response = api_client.post('/api/match/swipe/', {'target_user_id': 1, 'liked': True}, format='json')
    assert response.status_code == 401


def test_swipe_requires_complete_profile(make_user, auth_client):
    user = make_user()
    target = make_user()

    response = auth_client(user).post(
        '/api/match/swipe/', {'target_user_id': target.id, 'liked': True}, format='json'
    )

    assert response.status_code == 400
    assert response.data['success'] is False
    assert response.data['requires_profile_setup'] is True
    assert response.data['missing_fields'] == {
        'profile_complete': False,
        'preferences': True,
        'location': True,
    }


def test_swipe_and_match(seeker, make_user, auth_client):
    bob = make_user(gender='male', age=30, location=(0.0, 0.1), genders=['female'])

    response = auth_client(seeker).post(
        '/api/match/swipe/', {'target_user_id': bob.id, 'liked': True}, format='json'
    )
    assert response.status_code == 200
    assert response.data == {'success': True, 'data': {'matched': False, 'match_id': None}}

    response = auth_client(bob).post(
        '/api/match/swipe/', {'target_user_id': seeker.id, 'liked': True}, format='json'
    )
    assert response.data['data']['matched'] is True
    assert response.data['data']['match_id'] is not None


def test_swipe_rejects_string_boolean(seeker, make_user, auth_client):
    bob = make_user(gender='male')

    response = auth_client(seeker).post(
        '/api/match/swipe/', {'target_user_id': bob.id, 'liked': 'yes'}, format='json'
    )

    assert response.status_code == 400
    assert response.data['error'] == 'validation_error'
    assert 'liked' in response.data['errors']


def test_self_swipe(seeker, auth_client):
    response = auth_client(seeker).post(
        '/api/match/swipe/', {'target_user_id': seeker.id, 'liked': True}, format='json'
    )

    assert response.status_code == 400
    assert response.data['error'] == 'validation_error'


def test_candidates(seeker, make_user, auth_client):
    bob = make_user(gender='male', age=30, location=(0.0, 0.1))

    response = auth_client(seeker).get('/api/match/')

    assert response.status_code == 200
    assert response.data['count'] == 1
    assert response.data['data'][0]['id'] == bob.id
    assert response.data['data'][0]['distance'] == 11.1
    assert 'email' not in response.data['data'][0]


def test_check_match(matched_pair, auth_client):
    alice, bob, match = matched_pair

    response = auth_client(alice).get(f'/api/match/check-match/{bob.id}/')

    assert response.data['data'] == {'is_match': True, 'match_id': match.id}


def test_match_list_exposes_counterpart(matched_pair, auth_client):
    alice, bob, match = matched_pair

    response = auth_client(alice).get('/api/match/matches/')

    assert response.status_code == 200
    assert response.data['count'] == 1
    assert response.data['data'][0]['id'] == match.id
    assert response.data['data'][0]['user']['id'] == bob.id


def test_match_retrieve_by_outsider(matched_pair, make_user, auth_client):
    _, _, match = matched_pair
    outsider = make_user()

    response = auth_client(outsider).get(f'/api/match/matches/{match.id}/')

    assert response.status_code == 404
    assert response.data['success'] is False


def test_match_messages(matched_pair, auth_client):
    alice, bob, match = matched_pair

    response = auth_client(alice).post(
        f'/api/match/matches/{match.id}/messages/', {'text': 'Salut !'}, format='json'
    )
    assert response.status_code == 201
    assert response.data['data']['content'] == 'Salut !'
    assert response.data['data']['status'] == 'delivered'

    response = auth_client(bob).get(f'/api/match/matches/{match.id}/messages/')
    assert response.status_code == 200
    assert [message['content'] for message in response.data['data']] == ['Salut !']
    assert Message.objects.get(match=match).status == 'read'


def test_match_messages_require_match(make_user, auth_client):
    alice, bob = make_user(), make_user()
    match, _ = MatchService.record_swipe(alice, bob.id, True)

    response = auth_client(alice).post(
        f'/api/match/matches/{match.id}/messages/', {'text': 'Salut !'}, format='json'
    )

    assert response.status_code == 404


def test_preferences_update(make_user, auth_client):
    user = make_user()
    client = auth_client(user)

    response = client.patch(
        '/api/match/preferences/', {'genders': ['female', 'female'], 'min_age': 25}, format='json'
    )
    assert response.status_code == 200
    assert response.data['data']['genders'] == ['female']
    assert response.data['data']['min_age'] == 25

    response = client.patch('/api/match/preferences/', {'min_age': 60, 'max_age': 30}, format='json')
    assert response.status_code == 400

    response = client.patch('/api/match/preferences/', {'distance': 150}, format='json')
    assert response.status_code == 400
