# scripts/seed_users.py

import os
import sys
import random

import django
import requests
from faker import Faker

# Configurer l'environnement Django
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'vib3.settings')
django.setup()

from django.contrib.auth import get_user_model
from django.db import transaction

from accounts.models import UserPhoto
from matchmaking.models import UserPreference

fake = Faker(['fr_FR'])
User = get_user_model()

# Paramètres configurables
NUM_USERS = int(os.environ.get('SEED_USERS', 30))
DEFAULT_PASSWORD = 'Password123!'
LOCATIONS = [
    {'city': 'Paris', 'country': 'France', 'lat': 48.8566, 'lng': 2.3522},
    {'city': 'Lyon', 'country': 'France', 'lat': 45.7640, 'lng': 4.8357},
    {'city': 'Marseille', 'country': 'France', 'lat': 43.2965, 'lng': 5.3698},
    {'city': 'Bordeaux', 'country': 'France', 'lat': 44.8378, 'lng': -0.5792},
    {'city': 'Lille', 'country': 'France', 'lat': 50.6292, 'lng': 3.0573},
    {'city': 'Bruxelles', 'country': 'Belgique', 'lat': 50.8503, 'lng': 4.3517},
    {'city': 'Genève', 'country': 'Suisse', 'lat': 46.2044, 'lng': 6.1432},
    {'city': 'Montréal', 'country': 'Canada', 'lat': 45.5019, 'lng': -73.5674},
]
INTERESTS = [
    'cinéma', 'randonnée', 'cuisine', 'voyages', 'musique', 'lecture',
    'photographie', 'yoga', 'jeux vidéo', 'danse', 'football', 'art',
]


def fetch_picture_urls(gender, count):
    """Récupère des URLs de photos de profil depuis une API d'avatars"""
    gender_param = 'male' if gender == 'male' else 'female'
    try:
        response = requests.get(
            'https://randomuser.me/api/',
            params={'gender': gender_param, 'nat': 'fr', 'results': count},
            timeout=10
        )
        response.raise_for_status()
        return [result['picture']['large'] for result in response.json()['results']]
    except (requests.RequestException, KeyError, ValueError) as e:
        print(f"Erreur lors de la récupération des photos: {e}")
        return [f"https://i.pravatar.cc/800?u={fake.uuid4()}" for _ in range(count)]


def create_user(index):
    gender = random.choice(['male', 'female', 'non-binary'])
    first_name = fake.first_name_male() if gender == 'male' else fake.first_name_female()
    email = f"{fake.user_name()}{index}{random.randint(100, 999)}@example.com"
    location = random.choice(LOCATIONS)

    with transaction.atomic():
        user = User.objects.create_user(
            username=email.split('@')[0],
            email=email,
            password=DEFAULT_PASSWORD
        )
        user.name = first_name
        user.age = random.randint(18, 60)
        user.gender = gender
        user.bio = fake.paragraph(nb_sentences=3)[:500]
        user.interests = random.sample(INTERESTS, random.randint(2, 5))
        user.latitude = location['lat'] + random.uniform(-0.05, 0.05)
        user.longitude = location['lng'] + random.uniform(-0.05, 0.05)
        user.city = location['city']
        user.country = location['country']
        user.save()

        # Préférences créées par le signal post_save
        preferences, _ = UserPreference.objects.get_or_create(user=user)
        preferences.genders = random.choice([['male'], ['female'], ['male', 'female'], []])
        preferences.min_age = random.randint(18, 35)
        preferences.max_age = preferences.min_age + random.randint(5, 25)
        preferences.distance = random.choice([10, 20, 30, 50, 100])
        preferences.save()

        for url in fetch_picture_urls(gender, random.randint(1, 4)):
            UserPhoto.objects.create(user=user, url=url)

        user.update_profile_completeness()

    return user


def seed_users(count=NUM_USERS):
    """Crée des utilisateurs fictifs avec des profils complets"""
    print(f"Création de {count} utilisateurs fictifs...")

    created_count = 0
    for index in range(count):
        user = create_user(index)
        created_count += 1
        print(f"Créé {created_count}/{count}: {user.email} ({user.gender}, {user.city})")

    print(f"Terminé! {created_count} utilisateurs fictifs créés. Mot de passe: {DEFAULT_PASSWORD}")


if __name__ == "__main__":
    seed_users()
