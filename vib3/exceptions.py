# vib3/exceptions.py

import logging

from django.conf import settings
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ValidationError(exceptions.APIException):
    """Entrée mal formée ou manquante"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Données invalides."
    default_code = 'validation_error'

    def __init__(self, detail=None, code=None, errors=None):
        super().__init__(detail, code)
        self.errors = errors


class AuthorizationError(exceptions.APIException):
    """L'utilisateur n'a pas les droits sur la ressource"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Action non autorisée."
    default_code = 'authorization_error'


class NotFoundError(exceptions.APIException):
    """Ressource absente, ou invisible pour l'utilisateur"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Ressource introuvable."
    default_code = 'not_found'


class PreconditionError(exceptions.APIException):
    """Profil incomplet: porte le détail des champs manquants"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Veuillez compléter votre profil pour accéder à cette fonctionnalité."
    default_code = 'profile_incomplete'

    def __init__(self, missing_fields=None, detail=None, code=None):
        super().__init__(detail, code)
        self.missing_fields = missing_fields or {}


class ConflictError(exceptions.APIException):
    """Transaction annulée ou écriture concurrente: l'appelant doit réessayer"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflit d'écriture, veuillez réessayer."
    default_code = 'conflict'


class DependencyError(exceptions.APIException):
    """Échec d'un service externe (stockage des médias)"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service externe indisponible."
    default_code = 'dependency_error'


def api_exception_handler(exc, context):
    """
    Transforme toutes les erreurs en enveloppe {success: false, ...}

    Les erreurs inattendues sont journalisées et renvoyées en 500; le texte
    de l'exception n'est exposé qu'en mode DEBUG.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            f"Erreur inattendue dans {view.__class__.__name__ if view else 'vue inconnue'}: {exc}",
            exc_info=exc
        )
        data = {
            'success': False,
            'message': "Erreur interne du serveur",
            'error': 'server_error',
        }
        if settings.DEBUG:
            data['detail'] = str(exc)
        return Response(data, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        data = {
            'success': False,
            'message': ValidationError.default_detail,
            'error': 'validation_error',
            'errors': response.data,
        }
    else:
        detail = response.data.get('detail') if isinstance(response.data, dict) else response.data
        data = {
            'success': False,
            'message': str(detail),
            'error': getattr(detail, 'code', None) or 'error',
        }

    if isinstance(exc, ValidationError) and exc.errors:
        data['errors'] = exc.errors

    if isinstance(exc, PreconditionError):
        data['requires_profile_setup'] = True
        data['missing_fields'] = exc.missing_fields

    if response.status_code >= 500:
        logger.warning(f"Erreur de dépendance: {data['message']}")

    response.data = data
    return response
