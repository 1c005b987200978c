# accounts/tests/test_accounts.py

from unittest import mock

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.contrib.auth import get_user_model

from accounts.models import UserPhoto
from accounts.permissions import get_missing_profile_fields, check_profile_complete
from accounts.services import PhotoService, AccountService
from matchmaking.models import Match, Swipe
from matchmaking.services import MatchService
from messaging.models import Message
from messaging.services import ChatService
from vib3.exceptions import PreconditionError, DependencyError

User = get_user_model()

pytestmark = pytest.mark.django_db


def fake_storage(public_id='vib3/profiles/new'):
    storage = mock.Mock()
    storage.upload_image.return_value = {
        'url': f'https://res.cloudinary.com/demo/image/upload/v1/{public_id}.webp',
        'public_id': public_id,
        'width': 800,
        'height': 800,
        'format': 'webp',
        'bytes': 1024,
    }
    storage.delete_image.return_value = True
    return storage


class TestProfileCompleteness:

    def test_requires_a_photo(self, make_user):
        user = make_user(complete=False)
        user.bio = "Bio"
        user.save()

        assert user.update_profile_completeness() is False

        PhotoService.add_photo(user, SimpleUploadedFile('a.jpg', b'x'), storage=fake_storage())

        user.refresh_from_db()
        assert user.profile_complete is True

    def test_removing_last_photo_resets_flag(self, make_user):
        user = make_user()
        photo = user.photos.get()

        PhotoService.remove_photo(user, photo, storage=fake_storage())

        user.refresh_from_db()
        assert user.profile_complete is False

    def test_first_photo_is_primary_and_next_is_promoted(self, make_user):
        user = make_user()
        first = user.photos.get()
        second = PhotoService.add_photo(user, SimpleUploadedFile('b.jpg', b'x'), storage=fake_storage())

        assert first.is_primary is True
        assert second.is_primary is False

        PhotoService.remove_photo(user, first, storage=fake_storage())

        second.refresh_from_db()
        assert second.is_primary is True

    def test_single_primary(self, make_user):
        user = make_user()
        second = UserPhoto.objects.create(user=user, url='https://example.com/b.webp')

        second.is_primary = True
        second.save()

        assert user.photos.filter(is_primary=True).count() == 1
        assert user.photos.first() == second


class TestProfileGate:

    def test_descriptor(self, make_user):
        user = make_user(complete=False)

        assert get_missing_profile_fields(user) == {
            'profile_complete': True,
            'preferences': True,
            'location': True,
        }

    def test_complete_profile_passes(self, make_user):
        user = make_user(genders=['female'], location=(48.85, 2.35))

        assert check_profile_complete(user) is True

    def test_incomplete_profile_raises(self, make_user):
        user = make_user(genders=['female'])

        with pytest.raises(PreconditionError) as excinfo:
            check_profile_complete(user)

        assert excinfo.value.missing_fields['location'] is True


class TestPhotoService:

    def test_upload_failure_creates_nothing(self, make_user):
        user = make_user(complete=False)
        storage = fake_storage()
        storage.upload_image.side_effect = DependencyError()

        with pytest.raises(DependencyError):
            PhotoService.add_photo(user, SimpleUploadedFile('a.jpg', b'x'), storage=storage)

        assert not user.photos.exists()

    def test_remote_delete_failure_is_tolerated(self, make_user):
        user = make_user()
        storage = fake_storage()
        storage.delete_image.side_effect = DependencyError()

        PhotoService.remove_photo(user, user.photos.get(), storage=storage)

        assert not user.photos.exists()


class TestAccountDeletion:

    def test_cascade(self, make_user):
        alice, bob = make_user(), make_user()
        MatchService.record_swipe(alice, bob.id, True)
        MatchService.record_swipe(bob, alice.id, True)
        chat, _ = ChatService.create_chat(alice, [bob.id])
        ChatService.send_message(alice, chat.id, content="Bonjour")
        storage = fake_storage()

        AccountService.delete_account(alice, storage=storage)

        assert not User.objects.filter(email='user1@example.com').exists()
        assert not Match.objects.exists()
        assert not Swipe.objects.exists()
        assert not Message.objects.exists()
        assert chat.participants.count() == 1
        storage.delete_image.assert_called_once_with('vib3/profiles/p1')


class TestAccountApi:

    def test_register(self, api_client):
        response = api_client.post('/api/accounts/register/', {
            'email': 'Jane@Example.com',
            'name': 'Jane',
            'gender': 'female',
            'password': 'Sup3r-secret-pass',
            'password2': 'Sup3r-secret-pass',
        }, format='json')

        assert response.status_code == 201
        assert response.data['success'] is True
        assert response.data['data']['access']
        assert response.data['data']['user']['email'] == 'jane@example.com'
        assert response.data['data']['user']['username'] == 'jane'
        assert response.data['data']['user']['profile_complete'] is False

    def test_register_password_mismatch(self, api_client):
        response = api_client.post('/api/accounts/register/', {
            'email': 'jane@example.com',
            'name': 'Jane',
            'password': 'Sup3r-secret-pass',
            'password2': 'other',
        }, format='json')

        assert response.status_code == 400
        assert response.data['error'] == 'validation_error'
        assert 'password' in response.data['errors']

    def test_me_update_recomputes_completeness(self, make_user, auth_client):
        user = make_user(complete=False)
        PhotoService.add_photo(user, SimpleUploadedFile('a.jpg', b'x'), storage=fake_storage())

        response = auth_client(user).patch('/api/accounts/users/me/', {
            'bio': "J'aime la randonnée",
            'interests': ['cinéma', 'cinéma', 'voyages'],
        }, format='json')

        assert response.status_code == 200
        assert response.data['data']['profile_complete'] is True
        assert response.data['data']['interests'] == ['cinéma', 'voyages']

    def test_update_location(self, make_user, auth_client):
        user = make_user()

        response = auth_client(user).post('/api/accounts/users/update_location/', {
            'latitude': 48.85, 'longitude': 2.35, 'city': 'Paris'
        }, format='json')

        assert response.status_code == 200
        user.refresh_from_db()
        assert user.has_location
        assert user.city == 'Paris'

    def test_update_location_out_of_range(self, make_user, auth_client):
        response = auth_client(make_user()).post('/api/accounts/users/update_location/', {
            'latitude': 95, 'longitude': 2.35
        }, format='json')

        assert response.status_code == 400

    def test_me_update_rejects_out_of_range_coordinates(self, make_user, auth_client):
        user = make_user(location=(48.85, 2.35))

        response = auth_client(user).patch('/api/accounts/users/me/', {
            'latitude': 500, 'longitude': -999
        }, format='json')

        assert response.status_code == 400
        assert set(response.data['errors']) == {'latitude', 'longitude'}
        user.refresh_from_db()
        assert (user.latitude, user.longitude) == (48.85, 2.35)

    def test_photo_upload(self, make_user, auth_client):
        user = make_user(complete=False)
        image = SimpleUploadedFile('a.jpg', b'\xff\xd8\xff', content_type='image/jpeg')

        with mock.patch('accounts.services.CloudinaryService', return_value=fake_storage()):
            response = auth_client(user).post('/api/accounts/photos/', {'photo': image}, format='multipart')

        assert response.status_code == 201
        assert response.data['data']['photo']['is_primary'] is True
        assert response.data['data']['photo']['public_id'] == 'vib3/profiles/new'

    def test_photo_upload_rejects_non_images(self, make_user, auth_client):
        document = SimpleUploadedFile('a.pdf', b'%PDF', content_type='application/pdf')

        response = auth_client(make_user()).post('/api/accounts/photos/', {'photo': document}, format='multipart')

        assert response.status_code == 400

    def test_verification_status(self, make_user, auth_client):
        user = make_user(genders=['male'], location=(0.0, 0.0))

        response = auth_client(user).get('/api/accounts/verification-status/')

        assert response.data['data']['is_profile_complete'] is True

    def test_delete_me(self, make_user, auth_client):
        user = make_user()

        with mock.patch('accounts.services.CloudinaryService', return_value=fake_storage()):
            response = auth_client(user).delete('/api/accounts/users/me/')

        assert response.status_code == 200
        assert not User.objects.filter(id=user.id).exists()
