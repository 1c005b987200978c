# messaging/validators.py

from vib3.exceptions import ValidationError
from .models import Chat, Message

ATTACHMENT_TYPES = {choice for choice, _ in Message.ATTACHMENT_TYPE_CHOICES}
MESSAGE_TYPES = {choice for choice, _ in Message.TYPE_CHOICES}
CHAT_TYPES = {choice for choice, _ in Chat.TYPE_CHOICES}


def validate_message_payload(chat=None, match=None, content=None, attachment=None, message_type='text'):
    """
    Valide un message avant enregistrement

    Un message a exactement un parent (chat ou match) et porte un texte, une
    pièce jointe, ou les deux.

    Returns:
        dict: pièce jointe normalisée, ou None
    """
    if (chat is None) == (match is None):
        raise ValidationError("Un message doit appartenir soit à un chat, soit à un match.")

    if message_type not in MESSAGE_TYPES:
        raise ValidationError(f"Type de message inconnu: {message_type}")

    has_content = bool(content and content.strip())
    if not has_content and not attachment:
        raise ValidationError("Le contenu du message ou une pièce jointe est requis.")

    if not attachment:
        return None

    if not isinstance(attachment, dict):
        raise ValidationError("Pièce jointe invalide.")

    errors = {}
    attachment_type = attachment.get('type')
    if attachment_type not in ATTACHMENT_TYPES:
        errors['type'] = f"Type de pièce jointe invalide: {attachment_type}"
    if not attachment.get('url'):
        errors['url'] = "L'URL de la pièce jointe est requise."

    size = attachment.get('size')
    if size is not None and (not isinstance(size, int) or isinstance(size, bool) or size < 0):
        errors['size'] = "La taille doit être un entier positif."

    if errors:
        raise ValidationError("Pièce jointe invalide.", errors={'attachment': errors})

    return {
        'type': attachment_type,
        'url': attachment['url'],
        'name': attachment.get('name') or '',
        'size': size,
    }


def validate_chat_payload(chat_type, creator, other_ids):
    """
    Valide la création d'un chat

    Une conversation directe compte exactement deux participants; un groupe
    a toujours un créateur.
    """
    if chat_type not in CHAT_TYPES:
        raise ValidationError(f"Type de chat inconnu: {chat_type}")

    if not other_ids:
        raise ValidationError("Au moins un participant est requis.")

    if chat_type == 'direct' and len(other_ids) != 1:
        raise ValidationError("Une conversation directe doit avoir exactement 2 participants.")

    if chat_type == 'group' and creator is None:
        raise ValidationError("Un groupe doit avoir un créateur.")
