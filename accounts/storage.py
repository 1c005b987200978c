# accounts/storage.py

import re
import time
import logging

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from django.conf import settings

from vib3.exceptions import DependencyError

logger = logging.getLogger(__name__)

PUBLIC_ID_PATTERN = re.compile(r'/v\d+/(.+)\.[^./]+$')


def configure_cloudinary():
    """Configure le SDK Cloudinary à partir des réglages Django"""
    cloudinary.config(
        cloud_name=getattr(settings, 'CLOUDINARY_CLOUD_NAME', ''),
        api_key=getattr(settings, 'CLOUDINARY_API_KEY', ''),
        api_secret=getattr(settings, 'CLOUDINARY_API_SECRET', ''),
        secure=True
    )


def extract_public_id(url):
    """
    Récupère l'identifiant Cloudinary à partir d'une URL de diffusion

    Exemple: https://res.cloudinary.com/demo/image/upload/v1234567890/vib3/profiles/abc123.webp
    donne 'vib3/profiles/abc123'
    """
    if not url:
        return None
    match = PUBLIC_ID_PATTERN.search(url)
    return match.group(1) if match else None


class CloudinaryService:
    """
    Service pour gérer les interactions avec Cloudinary

    Le cœur de l'application ne conserve que l'URL et l'identifiant de
    référence des images, jamais les octets.
    """

    TRANSFORMATION = [
        {'width': 800, 'height': 800, 'crop': 'fill', 'quality': 'auto'},
        {'fetch_format': 'webp'},
    ]
    ALLOWED_FORMATS = ['jpg', 'jpeg', 'png', 'webp']

    def __init__(self):
        self.timeout = getattr(settings, 'CLOUDINARY_TIMEOUT', 60)
        self.retries = getattr(settings, 'CLOUDINARY_UPLOAD_RETRIES', 3)

    @property
    def is_configured(self):
        config = cloudinary.config()
        return bool(config.cloud_name and config.api_key and config.api_secret)

    def upload_image(self, image, folder=None):
        """
        Téléverse une image

        Args:
            image: Fichier téléversé (UploadedFile ou objet fichier)
            folder: Dossier Cloudinary (par défaut: CLOUDINARY_UPLOAD_FOLDER)

        Returns:
            dict: url, public_id, width, height, format, bytes

        Raises:
            DependencyError: service non configuré ou échec de toutes les tentatives
        """
        if not self.is_configured:
            logger.error("Configuration Cloudinary manquante")
            raise DependencyError("Le service de téléversement d'images n'est pas configuré.")

        folder = folder or getattr(settings, 'CLOUDINARY_UPLOAD_FOLDER', 'vib3/profiles')

        last_error = None
        for attempt in range(1, self.retries + 1):
            logger.info(f"Téléversement Cloudinary, tentative {attempt}/{self.retries}")
            if hasattr(image, 'seek'):
                image.seek(0)

            try:
                result = cloudinary.uploader.upload(
                    image,
                    folder=folder,
                    transformation=self.TRANSFORMATION,
                    allowed_formats=self.ALLOWED_FORMATS,
                    resource_type='image',
                    timeout=self.timeout
                )
                return {
                    'url': result['secure_url'],
                    'public_id': result['public_id'],
                    'width': result.get('width'),
                    'height': result.get('height'),
                    'format': result.get('format'),
                    'bytes': result.get('bytes'),
                }
            except CloudinaryError as e:
                last_error = str(e)

            logger.warning(f"Échec de la tentative {attempt} de téléversement: {last_error}")
            if attempt < self.retries:
                time.sleep(2 ** attempt)

        logger.error(f"Téléversement impossible après {self.retries} tentatives: {last_error}")
        raise DependencyError("Échec du téléversement de l'image.")

    def delete_image(self, public_id):
        """
        Supprime une image

        Returns:
            bool: True si Cloudinary confirme la suppression

        Raises:
            DependencyError: service non configuré ou injoignable
        """
        if not self.is_configured:
            raise DependencyError("Le service de stockage d'images n'est pas configuré.")

        try:
            result = cloudinary.uploader.destroy(public_id, timeout=self.timeout)
        except CloudinaryError as e:
            logger.error(f"Erreur lors de la suppression de l'image {public_id}: {e}")
            raise DependencyError("Échec de la suppression de l'image.") from e

        if result.get('result') != 'ok':
            logger.warning(f"Suppression refusée pour {public_id}: {result.get('result')}")
            return False

        return True
