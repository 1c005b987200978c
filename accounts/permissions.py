# accounts/permissions.py

from rest_framework import permissions

from vib3.exceptions import PreconditionError


def get_missing_profile_fields(user):
    """
    Décrit ce qui manque au profil pour accéder à la découverte et aux swipes

    Returns:
        dict: {profile_complete, preferences, location}, True signifiant "manquant"
    """
    preferences = getattr(user, 'preferences', None)
    has_preferences = bool(preferences and preferences.genders)

    return {
        'profile_complete': not user.profile_complete,
        'preferences': not has_preferences,
        'location': not user.has_location,
    }


def check_profile_complete(user):
    """Lève PreconditionError si le profil ne permet pas la recherche"""
    missing = get_missing_profile_fields(user)
    if any(missing.values()):
        raise PreconditionError(missing_fields=missing)
    return True


class IsProfileComplete(permissions.BasePermission):
    """Bloque l'accès tant que le profil, les préférences et la localisation ne sont pas renseignés"""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return check_profile_complete(request.user)
