# accounts/services.py

import logging
from django.db import transaction, DatabaseError

from vib3.exceptions import DependencyError, ConflictError
from .models import UserPhoto
from .storage import CloudinaryService, extract_public_id

logger = logging.getLogger(__name__)


class PhotoService:
    """
    Service pour gérer les photos de profil
    """

    @staticmethod
    def add_photo(user, image, storage=None):
        """
        Téléverse une image puis l'ajoute aux photos de l'utilisateur

        Si l'enregistrement échoue après le téléversement, l'image distante
        est supprimée.
        """
        storage = storage or CloudinaryService()
        upload = storage.upload_image(image)

        try:
            with transaction.atomic():
                photo = UserPhoto.objects.create(
                    user=user,
                    url=upload['url'],
                    public_id=upload['public_id']
                )
        except DatabaseError as e:
            logger.error(f"Échec de l'enregistrement de la photo de {user.id}, nettoyage de {upload['public_id']}")
            PhotoService._destroy_quietly(storage, upload['public_id'])
            raise ConflictError("Impossible d'enregistrer la photo.") from e

        user.update_profile_completeness()
        logger.info(f"Photo {photo.id} ajoutée pour l'utilisateur {user.id}")
        return photo

    @staticmethod
    def remove_photo(user, photo, storage=None):
        """Supprime une photo; la suivante devient principale si besoin"""
        storage = storage or CloudinaryService()
        public_id = photo.public_id or extract_public_id(photo.url)
        was_primary = photo.is_primary

        photo.delete()

        if public_id:
            PhotoService._destroy_quietly(storage, public_id)

        if was_primary:
            next_photo = UserPhoto.objects.filter(user=user).first()
            if next_photo:
                next_photo.is_primary = True
                next_photo.save()

        user.update_profile_completeness()

    @staticmethod
    def _destroy_quietly(storage, public_id):
        # La ligne locale ne dépend pas du résultat distant: on journalise seulement
        try:
            if not storage.delete_image(public_id):
                logger.warning(f"Cloudinary n'a pas confirmé la suppression de {public_id}")
        except DependencyError:
            logger.warning(f"Image {public_id} non supprimée chez Cloudinary")


class AccountService:
    """
    Service pour la suppression des comptes
    """

    @staticmethod
    def delete_account(user, storage=None):
        """
        Supprime définitivement un compte

        La suppression est en cascade: matchs, historique de swipes,
        participations aux chats, messages envoyés, accusés de lecture et
        réactions disparaissent avec l'utilisateur.
        """
        storage = storage or CloudinaryService()
        public_ids = [
            photo.public_id or extract_public_id(photo.url)
            for photo in user.photos.all()
        ]

        user_id = user.id
        user.delete()

        for public_id in filter(None, public_ids):
            PhotoService._destroy_quietly(storage, public_id)

        logger.info(f"Compte {user_id} supprimé")
