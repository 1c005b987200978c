# messaging/services.py

import logging
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction, DatabaseError
from django.utils import timezone

from matchmaking.models import Match
from vib3.exceptions import (
    ValidationError, AuthorizationError, NotFoundError, ConflictError
)
from .models import Chat, ChatParticipant, Message, ReadReceipt, Reaction, DeletedMessage
from .validators import validate_message_payload, validate_chat_payload

User = get_user_model()
logger = logging.getLogger(__name__)


def _attachment_fields(attachment):
    if not attachment:
        return {}
    return {
        'attachment_type': attachment['type'],
        'attachment_url': attachment['url'],
        'attachment_name': attachment['name'],
        'attachment_size': attachment['size'],
    }


def _with_relations(queryset):
    return queryset.select_related(
        'sender', 'reply_to'
    ).prefetch_related(
        'sender__photos', 'read_by', 'reactions', 'deletions'
    )


class ChatService:
    """
    Service pour les chats et le cycle de vie des messages

    Les écritures qui touchent plusieurs enregistrements (création d'un chat
    et de ses participants, envoi d'un message) sont atomiques: un échec de
    la base annule tout et remonte en ConflictError, sans nouvel essai.
    """

    @staticmethod
    def _normalize_ids(creator, participant_ids):
        if not isinstance(participant_ids, (list, tuple)):
            raise ValidationError("La liste des participants est requise.")

        other_ids = []
        for participant_id in participant_ids:
            try:
                participant_id = int(participant_id)
            except (TypeError, ValueError):
                raise ValidationError(f"Identifiant de participant invalide: {participant_id}")
            if participant_id != creator.id and participant_id not in other_ids:
                other_ids.append(participant_id)
        return other_ids

    @staticmethod
    def find_direct_chat(user, other_user_id):
        """Conversation directe existante entre exactement ces deux utilisateurs"""
        candidates = Chat.objects.filter(
            chat_type='direct',
            is_deleted=False,
            participants__user=user
        ).filter(
            participants__user_id=other_user_id
        ).distinct()

        expected = {user.id, other_user_id}
        for chat in candidates:
            if set(chat.participants.values_list('user_id', flat=True)) == expected:
                return chat
        return None

    @staticmethod
    def create_chat(creator, participant_ids, chat_type='direct', name=None, description=None):
        """
        Crée un chat direct ou de groupe

        Une conversation directe déjà existante entre les deux utilisateurs est
        renvoyée telle quelle; les groupes ne sont jamais dédoublonnés.

        Returns:
            tuple: (chat, created)
        """
        other_ids = ChatService._normalize_ids(creator, participant_ids)
        validate_chat_payload(chat_type, creator, other_ids)

        found_ids = set(
            User.objects.filter(id__in=other_ids, is_active=True).values_list('id', flat=True)
        )
        missing_ids = [user_id for user_id in other_ids if user_id not in found_ids]
        if missing_ids:
            raise NotFoundError(f"Utilisateur(s) non trouvé(s): {', '.join(map(str, missing_ids))}")

        if chat_type == 'direct':
            existing_chat = ChatService.find_direct_chat(creator, other_ids[0])
            if existing_chat:
                return existing_chat, False

        try:
            with transaction.atomic():
                chat = Chat.objects.create(
                    chat_type=chat_type,
                    name=name or '',
                    description=description or '',
                    created_by=creator
                )
                ChatParticipant.objects.bulk_create(
                    [ChatParticipant(chat=chat, user=creator, role='admin')] +
                    [ChatParticipant(chat=chat, user_id=user_id) for user_id in other_ids]
                )
        except DatabaseError as e:
            logger.warning(f"Création de chat annulée pour {creator.id}: {e}")
            raise ConflictError() from e

        logger.info(f"Chat {chat.id} ({chat_type}) créé par {creator.id}")
        return chat, True

    @staticmethod
    def list_chats(user, page=1, limit=None):
        """
        Chats non supprimés de l'utilisateur, les plus récents d'abord

        Returns:
            tuple: (chats, total)
        """
        limit = limit or getattr(settings, 'CHAT_LIST_PAGE_SIZE', 20)
        if page < 1 or limit < 1:
            raise ValidationError("Paramètres de pagination invalides.")

        queryset = Chat.objects.filter(
            participants__user=user,
            is_deleted=False
        ).distinct().select_related(
            'last_message', 'last_message__sender'
        ).prefetch_related(
            'participants__user__photos'
        ).order_by('-updated_at', '-id')

        offset = (page - 1) * limit
        return list(queryset[offset:offset + limit]), queryset.count()

    @staticmethod
    def get_chat(user, chat_id):
        """Un non-participant ne peut pas distinguer un chat inaccessible d'un chat inexistant"""
        chat = Chat.objects.filter(
            id=chat_id,
            participants__user=user,
            is_deleted=False
        ).first()

        if chat is None:
            raise NotFoundError("Chat non trouvé ou accès refusé")
        return chat

    @staticmethod
    def send_message(sender, chat_id, content=None, attachment=None, reply_to=None, message_type='text'):
        """
        Envoie un message dans un chat

        Dans une même transaction: création du message (sent), mise à jour
        du dernier message du chat, lecture par l'expéditeur (delivered) et
        avancement de son pointeur de lecture.
        """
        attachment = validate_message_payload(
            chat=chat_id,
            content=content,
            attachment=attachment,
            message_type=message_type
        )
        if attachment and message_type == 'text':
            message_type = attachment['type']

        try:
            with transaction.atomic():
                chat = Chat.objects.select_for_update().filter(id=chat_id, is_deleted=False).first()
                participant = chat.get_participant(sender) if chat else None

                if participant is None:
                    raise NotFoundError("Chat non trouvé ou accès refusé")

                if participant.is_blocked:
                    logger.warning(f"Envoi refusé: {sender.id} est bloqué dans le chat {chat.id}")
                    raise AuthorizationError("Vous ne pouvez plus envoyer de messages dans ce chat.")

                reply_message = None
                if reply_to is not None:
                    reply_message = Message.objects.filter(id=reply_to, chat=chat).first()
                    if reply_message is None:
                        raise ValidationError("Le message cité n'appartient pas à ce chat.")

                message = Message.objects.create(
                    chat=chat,
                    sender=sender,
                    content=content or '',
                    message_type=message_type,
                    reply_to=reply_message,
                    status='sent',
                    **_attachment_fields(attachment)
                )

                chat.last_message = message
                chat.save(update_fields=['last_message', 'updated_at'])

                # L'expéditeur lit son propre message: passage à delivered
                ReadReceipt.objects.create(message=message, user=sender)
                message.advance_status('delivered')
                message.save(update_fields=['status', 'updated_at'])

                participant.last_read_message = message
                participant.save(update_fields=['last_read_message'])
        except DatabaseError as e:
            logger.warning(f"Envoi de message annulé dans le chat {chat_id}: {e}")
            raise ConflictError() from e

        logger.debug(f"Message {message.id} envoyé par {sender.id} dans le chat {chat.id}")
        return _with_relations(Message.objects.filter(id=message.id)).get()

    @staticmethod
    def mark_as_read(reader, messages, advance_status=True):
        """
        Enregistre les accusés de lecture manquants

        Le statut passe à read pour les messages des autres expéditeurs.

        Returns:
            list: messages nouvellement lus
        """
        read_ids = set(
            ReadReceipt.objects.filter(
                user=reader,
                message__in=messages
            ).values_list('message_id', flat=True)
        )
        unread = [message for message in messages if message.id not in read_ids]
        if not unread:
            return []

        ReadReceipt.objects.bulk_create(
            [ReadReceipt(message=message, user=reader) for message in unread],
            ignore_conflicts=True
        )

        if advance_status:
            Message.objects.filter(
                id__in=[message.id for message in unread if message.sender_id != reader.id]
            ).exclude(
                status='read'
            ).update(status='read', updated_at=timezone.now())

        return unread

    @staticmethod
    def get_chat_messages(requester, chat_id, before=None, limit=None):
        """
        Récupère une page de messages, en ordre chronologique

        Args:
            before: seuls les messages créés strictement avant cette date
            limit: taille de la page

        La lecture marque les messages comme lus et avance le pointeur de
        lecture du demandeur jusqu'au message le plus récent de la page.
        """
        chat = ChatService.get_chat(requester, chat_id)
        limit = limit or getattr(settings, 'CHAT_MESSAGES_PAGE_SIZE', 20)
        if limit < 1:
            raise ValidationError("La limite doit être positive.")

        queryset = chat.messages.exclude(deletions__user=requester)
        if before is not None:
            queryset = queryset.filter(created_at__lt=before)

        page = list(queryset.order_by('-created_at', '-id')[:limit])

        if page:
            with transaction.atomic():
                ChatService.mark_as_read(
                    requester,
                    page,
                    advance_status=chat.is_direct or chat.read_receipts
                )

                newest = page[0]
                participant = ChatParticipant.objects.select_for_update().select_related(
                    'last_read_message'
                ).get(chat=chat, user=requester)
                current = participant.last_read_message
                if current is None or (newest.created_at, newest.id) > (current.created_at, current.id):
                    participant.last_read_message = newest
                    participant.save(update_fields=['last_read_message'])

        return list(
            _with_relations(Message.objects.filter(id__in=[message.id for message in page]))
            .order_by('created_at', 'id')
        )

    @staticmethod
    def can_access(user, message):
        """Vrai si l'utilisateur participe à la conversation du message"""
        if message.chat_id:
            chat = message.chat
            return not chat.is_deleted and chat.is_participant(user)
        match = message.match
        return match.matched and match.has_user(user)

    @staticmethod
    def get_message(message_id):
        message = Message.objects.filter(id=message_id).first()
        if message is None:
            raise NotFoundError("Message non trouvé")
        return message

    @staticmethod
    def delete_message(requester, message_id):
        """Suppression par l'expéditeur: le message reste stocké mais est marqué supprimé"""
        message = ChatService.get_message(message_id)

        if message.sender_id != requester.id:
            logger.warning(f"Suppression du message {message.id} refusée pour {requester.id}")
            raise AuthorizationError("Vous n'êtes pas autorisé à supprimer ce message")

        with transaction.atomic():
            message.is_deleted = True
            message.save(update_fields=['is_deleted', 'updated_at'])
            DeletedMessage.objects.get_or_create(message=message, user=requester)

        return message

    @staticmethod
    def hide_message(requester, message_id):
        """Supprimer un message pour l'utilisateur actuel uniquement"""
        message = ChatService.get_message(message_id)

        if not ChatService.can_access(requester, message):
            raise NotFoundError("Message non trouvé")

        DeletedMessage.objects.get_or_create(message=message, user=requester)
        return message

    @staticmethod
    def add_reaction(requester, message_id, emoji):
        """
        Ajoute, remplace ou retire la réaction de l'utilisateur

        Même emoji: la réaction est retirée. Autre emoji: elle est remplacée.

        Returns:
            list: réactions du message
        """
        emoji = (emoji or '').strip()
        if not emoji:
            raise ValidationError("L'emoji est requis.")

        message = ChatService.get_message(message_id)

        if not ChatService.can_access(requester, message):
            raise AuthorizationError("Vous n'êtes pas autorisé à réagir à ce message")

        try:
            with transaction.atomic():
                existing = Reaction.objects.select_for_update().filter(
                    message=message,
                    user=requester
                ).first()

                if existing is None:
                    Reaction.objects.create(message=message, user=requester, emoji=emoji)
                elif existing.emoji == emoji:
                    existing.delete()
                else:
                    existing.emoji = emoji
                    existing.save(update_fields=['emoji'])
        except DatabaseError as e:
            logger.warning(f"Réaction de {requester.id} sur le message {message.id} annulée: {e}")
            raise ConflictError() from e

        return list(message.reactions.select_related('user').order_by('created_at', 'id'))

    @staticmethod
    def add_participant(actor, chat_id, user_id, role='member'):
        """
        Ajoute un participant à un groupe (administrateurs uniquement)

        Returns:
            tuple: (participant, created)
        """
        chat = ChatService.get_chat(actor, chat_id)

        if chat.is_direct:
            raise ValidationError("Impossible d'ajouter un participant à une conversation directe.")

        if chat.get_participant(actor).role != 'admin':
            raise AuthorizationError("Seuls les administrateurs peuvent ajouter des participants.")

        if not User.objects.filter(id=user_id, is_active=True).exists():
            raise NotFoundError("Utilisateur non trouvé")

        participant, created = ChatParticipant.objects.get_or_create(
            chat=chat,
            user_id=user_id,
            defaults={'role': role}
        )
        if created:
            chat.save(update_fields=['updated_at'])
            logger.info(f"Utilisateur {user_id} ajouté au chat {chat.id} par {actor.id}")

        return participant, created

    @staticmethod
    def update_participant_role(actor, chat_id, user_id, role):
        """
        Change le rôle d'un participant d'un groupe (administrateurs uniquement)

        Un groupe garde toujours au moins un administrateur.
        """
        if role not in {choice for choice, _ in ChatParticipant.ROLE_CHOICES}:
            raise ValidationError(f"Rôle inconnu: {role}")

        chat = ChatService.get_chat(actor, chat_id)

        if chat.is_direct:
            raise ValidationError("Les rôles ne s'appliquent pas aux conversations directes.")

        if chat.get_participant(actor).role != 'admin':
            raise AuthorizationError("Seuls les administrateurs peuvent modifier les rôles.")

        participant = chat.participants.filter(user_id=user_id).first()
        if participant is None:
            raise NotFoundError("Participant non trouvé")

        if participant.role == role:
            return participant

        if participant.role == 'admin' and not chat.participants.filter(
            role='admin'
        ).exclude(id=participant.id).exists():
            raise ValidationError("Le groupe doit conserver au moins un administrateur.")

        participant.role = role
        participant.save(update_fields=['role'])
        logger.info(f"Rôle de {user_id} dans le chat {chat.id} changé en {role} par {actor.id}")
        return participant

    @staticmethod
    def remove_participant(actor, chat_id, user_id):
        """Retire un participant d'un groupe; chacun peut se retirer lui-même"""
        chat = ChatService.get_chat(actor, chat_id)

        if chat.is_direct:
            raise ValidationError("Impossible de retirer un participant d'une conversation directe.")

        if user_id != actor.id and chat.get_participant(actor).role != 'admin':
            raise AuthorizationError("Seuls les administrateurs peuvent retirer des participants.")

        participant = chat.participants.filter(user_id=user_id).first()
        if participant is None:
            raise NotFoundError("Participant non trouvé")

        participant.delete()
        chat.save(update_fields=['updated_at'])
        logger.info(f"Utilisateur {user_id} retiré du chat {chat.id} par {actor.id}")


class MatchMessageService:
    """
    Messagerie simple attachée à un match confirmé
    """

    @staticmethod
    def get_match(user, match_id):
        match = Match.objects.for_user(user).filter(id=match_id, matched=True).first()
        if match is None:
            raise NotFoundError("Match non trouvé")
        return match

    @staticmethod
    def send(sender, match_id, text):
        match = MatchMessageService.get_match(sender, match_id)
        validate_message_payload(match=match, content=text)

        try:
            with transaction.atomic():
                message = Message.objects.create(
                    match=match,
                    sender=sender,
                    content=text,
                    status='sent'
                )
                ReadReceipt.objects.create(message=message, user=sender)
                message.advance_status('delivered')
                message.save(update_fields=['status', 'updated_at'])
                match.save(update_fields=['updated_at'])
        except DatabaseError as e:
            logger.warning(f"Envoi de message annulé pour le match {match.id}: {e}")
            raise ConflictError() from e

        return _with_relations(Message.objects.filter(id=message.id)).get()

    @staticmethod
    def list_messages(user, match_id):
        """Messages du match en ordre chronologique, marqués comme lus"""
        match = MatchMessageService.get_match(user, match_id)

        messages = list(
            match.messages.exclude(deletions__user=user).order_by('created_at', 'id')
        )
        if messages:
            with transaction.atomic():
                ChatService.mark_as_read(user, messages)

        return list(
            _with_relations(Message.objects.filter(id__in=[message.id for message in messages]))
            .order_by('created_at', 'id')
        )
