# conftest.py

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounts.models import UserPhoto
from accounts.storage import configure_cloudinary

User = get_user_model()


@pytest.fixture(autouse=True)
def fast_settings(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    settings.CLOUDINARY_CLOUD_NAME = 'demo'
    settings.CLOUDINARY_API_KEY = 'key'
    settings.CLOUDINARY_API_SECRET = 'secret'
    configure_cloudinary()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    """
    Fabrique d'utilisateurs

    complete=True donne un profil complet (photo comprise); genders et
    location renseignent les préférences et la position.
    """
    counter = {'value': 0}

    def factory(name=None, age=30, gender='male', complete=True, genders=None,
                location=None, min_age=None, max_age=None, distance=None, **extra):
        counter['value'] += 1
        index = counter['value']
        user = User.objects.create_user(
            username=f"user{index}",
            email=f"user{index}@example.com",
            password='Password123!'
        )
        user.name = name or f"Utilisateur {index}"
        user.age = age
        user.gender = gender
        if complete:
            user.bio = "Bio de test"
        if location is not None:
            user.latitude, user.longitude = location
        for attr, value in extra.items():
            setattr(user, attr, value)
        user.save()

        if complete:
            UserPhoto.objects.create(
                user=user,
                url=f"https://res.cloudinary.com/demo/image/upload/v1/vib3/profiles/p{index}.webp",
                public_id=f"vib3/profiles/p{index}"
            )
            user.update_profile_completeness()

        preferences = user.preferences
        if genders is not None:
            preferences.genders = genders
        if min_age is not None:
            preferences.min_age = min_age
        if max_age is not None:
            preferences.max_age = max_age
        if distance is not None:
            preferences.distance = distance
        preferences.save()

        user.refresh_from_db()
        return user

    return factory


@pytest.fixture
def auth_client():
    def factory(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return factory
