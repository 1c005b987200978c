# accounts/models.py

from django.db import models
from django.contrib.auth.models import AbstractUser
from django.utils.translation import gettext_lazy as _
from django.core.validators import MinValueValidator, MaxValueValidator


class User(AbstractUser):
    """Modèle utilisateur personnalisé pour V!B3"""

    GENDER_CHOICES = (
        ('male', 'Homme'),
        ('female', 'Femme'),
        ('non-binary', 'Non-binaire'),
        ('prefer not to say', 'Ne souhaite pas le dire'),
    )

    email = models.EmailField(_('adresse email'), unique=True)
    name = models.CharField(_('nom affiché'), max_length=100, blank=True)
    age = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[
            MinValueValidator(18, "Vous devez avoir au moins 18 ans"),
            MaxValueValidator(120, "Veuillez saisir un âge valide"),
        ]
    )
    gender = models.CharField(
        max_length=20,
        choices=GENDER_CHOICES,
        blank=True
    )
    bio = models.TextField(max_length=500, blank=True)
    interests = models.JSONField(default=list, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    city = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, blank=True)
    profile_complete = models.BooleanField(default=False)
    last_active = models.DateTimeField(auto_now=True)
    created_at = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self):
        return self.name or self.username

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None

    def update_profile_completeness(self):
        """Recalcule le drapeau profile_complete (nom, âge, genre, bio et au moins une photo)"""
        is_complete = bool(
            self.name and
            self.age and
            self.gender and
            self.bio and
            self.photos.exists()
        )

        if is_complete != self.profile_complete:
            self.profile_complete = is_complete
            self.save(update_fields=['profile_complete'])

        return is_complete


class UserPhoto(models.Model):
    """Photos du profil utilisateur, stockées chez le fournisseur de médias"""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='photos')
    url = models.URLField(max_length=500)
    public_id = models.CharField(max_length=255, blank=True)
    is_primary = models.BooleanField(default=False)
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-is_primary', 'uploaded_at', 'id']

    def __str__(self):
        return f"Photo de {self.user.username}"

    def save(self, *args, **kwargs):
        # La première photo devient la photo principale
        if not self.pk and not UserPhoto.objects.filter(user=self.user).exists():
            self.is_primary = True
        # S'assurer qu'il n'y a qu'une seule photo principale
        if self.is_primary:
            UserPhoto.objects.filter(user=self.user, is_primary=True).exclude(pk=self.pk).update(is_primary=False)
        super().save(*args, **kwargs)
