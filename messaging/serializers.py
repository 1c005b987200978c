# messaging/serializers.py

from rest_framework import serializers
from django.contrib.auth import get_user_model

from accounts.serializers import PublicUserSerializer
from .models import Chat, ChatParticipant, Message, Reaction

User = get_user_model()

DELETED_CONTENT = "Ce message a été supprimé"


def _request_user(serializer):
    request = serializer.context.get('request')
    if request and hasattr(request, 'user'):
        return request.user
    return None


class ReactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Reaction
        fields = ('user', 'emoji', 'created_at')
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    sender_details = PublicUserSerializer(source='sender', read_only=True)
    content = serializers.SerializerMethodField()
    attachment = serializers.SerializerMethodField()
    read_by = serializers.SerializerMethodField()
    reactions = ReactionSerializer(many=True, read_only=True)
    is_sender = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = ('id', 'chat', 'match', 'sender', 'sender_details', 'content',
                 'message_type', 'attachment', 'reply_to', 'status', 'read_by',
                 'reactions', 'is_edited', 'is_deleted', 'is_sender',
                 'created_at', 'updated_at')
        read_only_fields = fields

    def get_content(self, obj):
        # Le contenu d'un message supprimé n'est plus exposé
        if obj.is_deleted:
            return DELETED_CONTENT
        return obj.content

    def get_attachment(self, obj):
        if obj.is_deleted:
            return None
        return obj.attachment

    def get_read_by(self, obj):
        return [receipt.user_id for receipt in obj.read_by.all()]

    def get_is_sender(self, obj):
        user = _request_user(self)
        return bool(user) and obj.sender_id == user.id


class MatchMessageSerializer(serializers.Serializer):
    text = serializers.CharField(max_length=5000, trim_whitespace=True)


class AttachmentSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Message.ATTACHMENT_TYPE_CHOICES)
    url = serializers.URLField(max_length=500)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    size = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class SendMessageSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, max_length=5000)
    attachment = AttachmentSerializer(required=False, allow_null=True)
    reply_to = serializers.IntegerField(required=False, allow_null=True)
    message_type = serializers.ChoiceField(choices=Message.TYPE_CHOICES, default='text')

    def validate(self, attrs):
        if not (attrs.get('content') or '').strip() and not attrs.get('attachment'):
            raise serializers.ValidationError(
                {"content": "Le contenu du message ou une pièce jointe est requis."}
            )
        return attrs


class CreateChatSerializer(serializers.Serializer):
    participants = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=False
    )
    chat_type = serializers.ChoiceField(choices=Chat.TYPE_CHOICES, default='direct')
    name = serializers.CharField(max_length=50, required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)


class AddParticipantSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    role = serializers.ChoiceField(choices=ChatParticipant.ROLE_CHOICES, default='member')


class UpdateParticipantRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=ChatParticipant.ROLE_CHOICES)


class EmojiSerializer(serializers.Serializer):
    emoji = serializers.CharField(max_length=32)


class ChatParticipantSerializer(serializers.ModelSerializer):
    user = PublicUserSerializer(read_only=True)

    class Meta:
        model = ChatParticipant
        fields = ('user', 'role', 'joined_at', 'last_read_message', 'is_muted', 'is_blocked')
        read_only_fields = fields


class ChatSerializer(serializers.ModelSerializer):
    participants = ChatParticipantSerializer(many=True, read_only=True)
    last_message = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()

    class Meta:
        model = Chat
        fields = ('id', 'name', 'description', 'chat_type', 'avatar', 'created_by',
                 'participants', 'last_message', 'unread_count', 'is_public',
                 'approval_required', 'encrypted', 'read_receipts', 'is_active',
                 'created_at', 'updated_at')
        read_only_fields = fields

    def get_last_message(self, obj):
        message = obj.last_message
        if message is None:
            return None

        # Un message masqué par le demandeur n'apparaît pas: on remonte au précédent
        user = _request_user(self)
        if user and message.is_deleted_for(user):
            message = obj.messages.exclude(
                deletions__user=user
            ).order_by('-created_at', '-id').first()
            if message is None:
                return None

        return {
            'id': message.id,
            'content': DELETED_CONTENT if message.is_deleted else message.content,
            'message_type': message.message_type,
            'sender_id': message.sender_id,
            'status': message.status,
            'created_at': message.created_at
        }

    def get_unread_count(self, obj):
        user = _request_user(self)
        if not user:
            return 0

        # Messages des autres participants sans accusé de lecture du demandeur
        return obj.messages.exclude(
            sender=user
        ).exclude(
            read_by__user=user
        ).exclude(
            deletions__user=user
        ).count()
