# matchmaking/models.py

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator

User = settings.AUTH_USER_MODEL


class MatchQuerySet(models.QuerySet):

    def for_user(self, user):
        return self.filter(models.Q(user1=user) | models.Q(user2=user))

    def between(self, user_a_id, user_b_id):
        """Match de la paire, quel que soit l'ordre des deux identifiants"""
        low, high = sorted([user_a_id, user_b_id])
        return self.filter(user1_id=low, user2_id=high)


class Match(models.Model):
    """
    Modèle pour une paire d'utilisateurs

    La paire est stockée triée (user1.id < user2.id) pour qu'un seul
    enregistrement existe par paire, même en cas de swipes simultanés.
    """

    user1 = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='matches_as_user1'
    )
    user2 = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='matches_as_user2'
    )
    matched = models.BooleanField(default=False, db_index=True)
    matched_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MatchQuerySet.as_manager()

    class Meta:
        unique_together = ('user1', 'user2')
        ordering = ['-updated_at']
        verbose_name_plural = 'matches'

    def __str__(self):
        return f"Match entre {self.user1_id} et {self.user2_id}"

    @property
    def user_ids(self):
        return (self.user1_id, self.user2_id)

    def has_user(self, user):
        return user.id in self.user_ids

    def other_user(self, user):
        """Récupère l'autre utilisateur de la paire"""
        return self.user2 if user.id == self.user1_id else self.user1

    def latest_vote(self, user_id):
        """Dernier swipe de l'utilisateur dans l'historique, ou None"""
        swipe = self.swipes.filter(user_id=user_id).order_by('-created_at', '-id').first()
        return swipe.liked if swipe else None


class Swipe(models.Model):
    """Historique des swipes d'une paire: jamais modifié, jamais supprimé"""

    match = models.ForeignKey(
        Match,
        on_delete=models.CASCADE,
        related_name='swipes'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='swipes'
    )
    liked = models.BooleanField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.user_id} {'♥' if self.liked else '✗'} (match {self.match_id})"


class UserPreference(models.Model):
    """Préférences de recherche des utilisateurs"""

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='preferences'
    )
    genders = models.JSONField(default=list, blank=True)
    min_age = models.PositiveSmallIntegerField(
        default=18,
        validators=[MinValueValidator(18), MaxValueValidator(120)]
    )
    max_age = models.PositiveSmallIntegerField(
        default=120,
        validators=[MinValueValidator(18), MaxValueValidator(120)]
    )
    distance = models.PositiveSmallIntegerField(
        default=50,
        validators=[MinValueValidator(1), MaxValueValidator(100)],
        help_text="Distance maximale en kilomètres"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Préférences de {self.user_id}"
