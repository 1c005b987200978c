# matchmaking/services.py

import logging
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction, DatabaseError
from django.utils import timezone

from accounts.permissions import get_missing_profile_fields
from vib3.exceptions import ValidationError, NotFoundError, PreconditionError, ConflictError
from .models import Match, Swipe
from .utils import rank_by_distance

User = get_user_model()
logger = logging.getLogger(__name__)


class MatchService:
    """
    Service pour les swipes et les matchs

    Règle de réciprocité: le dernier swipe de chaque utilisateur donne son
    vote actuel, l'historique complet n'est conservé que pour l'audit. Une
    paire devient un match quand les deux derniers votes sont des likes, et
    un match ne redevient jamais "non matché".
    """

    @staticmethod
    def record_swipe(acting_user, target_user_id, liked):
        """
        Enregistre un swipe et promeut la paire en match si les deux se sont likés

        Args:
            acting_user: L'utilisateur qui swipe
            target_user_id: ID de l'utilisateur ciblé
            liked: True pour un like, False pour un pass

        Returns:
            tuple: (match, matched)
        """
        if not isinstance(liked, bool):
            raise ValidationError("Le champ 'liked' doit être un booléen.")

        try:
            target_user_id = int(target_user_id)
        except (TypeError, ValueError):
            raise ValidationError("Identifiant d'utilisateur cible invalide.")

        if target_user_id == acting_user.id:
            raise ValidationError("Vous ne pouvez pas swiper votre propre profil.")

        if not User.objects.filter(id=target_user_id, is_active=True).exists():
            raise NotFoundError("Utilisateur non trouvé")

        low, high = sorted([acting_user.id, target_user_id])

        try:
            with transaction.atomic():
                # La contrainte d'unicité sur la paire triée fusionne les créations concurrentes
                match, created = Match.objects.select_for_update().get_or_create(
                    user1_id=low,
                    user2_id=high
                )

                Swipe.objects.create(match=match, user=acting_user, liked=liked)

                if not match.matched and MatchService.is_mutual(match):
                    match.matched = True
                    match.matched_at = timezone.now()
                    logger.info(f"Nouveau match {match.id} entre {low} et {high}")

                match.save()
        except DatabaseError as e:
            logger.warning(f"Swipe de {acting_user.id} vers {target_user_id} annulé: {e}")
            raise ConflictError() from e

        return match, match.matched

    @staticmethod
    def is_mutual(match):
        """Vrai si le dernier vote de chacun des deux utilisateurs est un like"""
        return all(match.latest_vote(user_id) is True for user_id in match.user_ids)

    @staticmethod
    def check_mutual_match(user, other_user_id):
        """
        Vérifie s'il existe un match avec un utilisateur donné

        Returns:
            tuple: (is_match, match_id ou None)
        """
        match = Match.objects.between(user.id, int(other_user_id)).first()
        if match and match.matched:
            return True, match.id
        return False, None

    @staticmethod
    def list_matches(user):
        """Matchs confirmés de l'utilisateur, les plus récents d'abord"""
        return (
            Match.objects.for_user(user)
            .filter(matched=True)
            .select_related('user1', 'user2')
            .prefetch_related('user1__photos', 'user2__photos')
            .order_by('-updated_at')
        )

    @staticmethod
    def swiped_user_ids(user):
        """Utilisateurs déjà likés ou passés par l'utilisateur"""
        pairs = Swipe.objects.filter(user=user).values_list('match__user1_id', 'match__user2_id')
        swiped = set()
        for user1_id, user2_id in pairs:
            swiped.add(user1_id)
            swiped.add(user2_id)
        swiped.discard(user.id)
        return swiped

    @staticmethod
    def find_candidates(user, limit=None):
        """
        Propose des profils à swiper

        Returns:
            list: paires (candidat, distance en km ou None), les plus proches d'abord

        Raises:
            PreconditionError: préférences ou localisation manquantes
        """
        missing = get_missing_profile_fields(user)
        if missing['preferences'] or missing['location']:
            raise PreconditionError(missing_fields=missing)

        preferences = user.preferences
        limit = limit or getattr(settings, 'CANDIDATE_LIMIT', 20)
        max_distance = preferences.distance or getattr(settings, 'DEFAULT_SEARCH_RADIUS', 50)

        excluded_ids = MatchService.swiped_user_ids(user)
        excluded_ids.add(user.id)

        queryset = User.objects.filter(
            gender__in=preferences.genders,
            age__gte=preferences.min_age or 18,
            age__lte=preferences.max_age or 120,
            profile_complete=True,
            is_active=True
        ).exclude(
            id__in=excluded_ids
        ).select_related(
            'preferences'
        ).prefetch_related(
            'photos'
        ).order_by('-last_active')

        # Préférence réciproque: le candidat doit aussi rechercher le genre de l'utilisateur
        candidates = [
            candidate for candidate in queryset
            if MatchService.accepts_gender(candidate, user.gender)
        ]

        return rank_by_distance(user, candidates, max_distance)[:limit]

    @staticmethod
    def accepts_gender(candidate, gender):
        preferences = getattr(candidate, 'preferences', None)
        if preferences is None or not preferences.genders:
            return True
        return gender in preferences.genders
