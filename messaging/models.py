# messaging/models.py

from django.db import models
from django.conf import settings

User = settings.AUTH_USER_MODEL


class Chat(models.Model):
    """Conversation directe (deux participants) ou de groupe"""

    TYPE_CHOICES = (
        ('direct', 'Directe'),
        ('group', 'Groupe'),
    )

    name = models.CharField(max_length=50, blank=True)
    description = models.TextField(max_length=500, blank=True)
    chat_type = models.CharField(
        max_length=10,
        choices=TYPE_CHOICES,
        default='direct'
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_chats'
    )
    last_message = models.ForeignKey(
        'Message',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    # Réglages des groupes; les conversations directes les ignorent
    is_public = models.BooleanField(default=False)
    approval_required = models.BooleanField(default=False)
    encrypted = models.BooleanField(default=False)
    read_receipts = models.BooleanField(default=True)

    avatar = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']

    def __str__(self):
        return self.name or f"Chat {self.id}"

    @property
    def is_direct(self):
        return self.chat_type == 'direct'

    def get_participant(self, user):
        return self.participants.filter(user=user).first()

    def is_participant(self, user):
        return self.participants.filter(user=user).exists()


class ChatParticipant(models.Model):
    """Appartenance d'un utilisateur à un chat"""

    ROLE_CHOICES = (
        ('admin', 'Administrateur'),
        ('moderator', 'Modérateur'),
        ('member', 'Membre'),
    )

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        related_name='participants'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='chat_memberships'
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='member')
    joined_at = models.DateTimeField(auto_now_add=True)
    last_read_message = models.ForeignKey(
        'Message',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    is_muted = models.BooleanField(default=False)
    is_blocked = models.BooleanField(default=False)

    class Meta:
        unique_together = ('chat', 'user')
        ordering = ['joined_at', 'id']

    def __str__(self):
        return f"{self.user_id} dans {self.chat_id} ({self.role})"


class Message(models.Model):
    """
    Message rattaché soit à un chat, soit à un match (jamais aux deux)

    Le statut est un résumé unique, qui ne fait qu'avancer:
    sent -> delivered -> read.
    """

    TYPE_CHOICES = (
        ('text', 'Texte'),
        ('image', 'Image'),
        ('video', 'Vidéo'),
        ('audio', 'Audio'),
        ('document', 'Document'),
        ('location', 'Localisation'),
        ('contact', 'Contact'),
    )

    ATTACHMENT_TYPE_CHOICES = (
        ('image', 'Image'),
        ('video', 'Vidéo'),
        ('audio', 'Audio'),
        ('document', 'Document'),
        ('location', 'Localisation'),
        ('contact', 'Contact'),
    )

    STATUS_CHOICES = (
        ('sent', 'Envoyé'),
        ('delivered', 'Livré'),
        ('read', 'Lu'),
    )
    STATUS_ORDER = ('sent', 'delivered', 'read')

    chat = models.ForeignKey(
        Chat,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='messages'
    )
    match = models.ForeignKey(
        'matchmaking.Match',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='messages'
    )
    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sent_messages'
    )
    message_type = models.CharField(
        max_length=10,
        choices=TYPE_CHOICES,
        default='text'
    )
    content = models.TextField(blank=True)
    attachment_type = models.CharField(
        max_length=10,
        choices=ATTACHMENT_TYPE_CHOICES,
        blank=True
    )
    attachment_url = models.URLField(max_length=500, blank=True)
    attachment_name = models.CharField(max_length=255, blank=True)
    attachment_size = models.PositiveIntegerField(null=True, blank=True)
    reply_to = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='replies'
    )
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default='sent'
    )
    is_edited = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['chat', '-created_at']),
            models.Index(fields=['match', '-created_at']),
        ]

    def __str__(self):
        return f"Message {self.id} de {self.sender_id}"

    @property
    def attachment(self):
        if not self.attachment_url:
            return None
        return {
            'type': self.attachment_type,
            'url': self.attachment_url,
            'name': self.attachment_name,
            'size': self.attachment_size,
        }

    def advance_status(self, status):
        """Fait avancer le statut; un statut inférieur ou égal est ignoré"""
        if self.STATUS_ORDER.index(status) > self.STATUS_ORDER.index(self.status):
            self.status = status
            return True
        return False

    def is_deleted_for(self, user):
        return self.deletions.filter(user=user).exists()


class ReadReceipt(models.Model):
    """Accusé de lecture: une seule entrée par lecteur"""

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name='read_by'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='read_receipts'
    )
    read_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('message', 'user')
        ordering = ['read_at', 'id']

    def __str__(self):
        return f"Message {self.message_id} lu par {self.user_id}"


class Reaction(models.Model):
    """Réaction emoji: au plus une par utilisateur et par message"""

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name='reactions'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='message_reactions'
    )
    emoji = models.CharField(max_length=32)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('message', 'user')
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.emoji} de {self.user_id} sur {self.message_id}"


class DeletedMessage(models.Model):
    """Modèle pour les messages supprimés par un utilisateur (masqués pour lui seul)"""

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name='deletions'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='deleted_messages'
    )
    deleted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('message', 'user')

    def __str__(self):
        return f"Message {self.message_id} supprimé par {self.user_id}"
