# messaging/views.py

from datetime import timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from vib3.exceptions import ValidationError
from .serializers import (
    ChatSerializer, ChatParticipantSerializer, MessageSerializer,
    ReactionSerializer, SendMessageSerializer, CreateChatSerializer,
    AddParticipantSerializer, UpdateParticipantRoleSerializer, EmojiSerializer
)
from .services import ChatService

MAX_PAGE_SIZE = 100


def _positive_int(value, name, default=None, maximum=None):
    if value in (None, ''):
        return default
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Le paramètre {name} doit être un entier.")
    if value < 1:
        raise ValidationError(f"Le paramètre {name} doit être positif.")
    if maximum is not None:
        return min(value, maximum)
    return value


def _parse_before(value):
    if not value:
        return None
    before = parse_datetime(value)
    if before is None:
        raise ValidationError("Le paramètre before doit être une date ISO 8601.")
    if timezone.is_naive(before):
        before = timezone.make_aware(before, dt_timezone.utc)
    return before


class ChatViewSet(viewsets.GenericViewSet):
    """API pour gérer les chats et leurs messages"""
    serializer_class = ChatSerializer
    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated]

    def list(self, request):
        page = _positive_int(request.query_params.get('page'), 'page', default=1)
        limit = _positive_int(request.query_params.get('limit'), 'limit', maximum=MAX_PAGE_SIZE)

        chats, total = ChatService.list_chats(request.user, page=page, limit=limit)
        serializer = self.get_serializer(chats, many=True)
        return Response({
            'success': True,
            'count': len(chats),
            'total': total,
            'data': serializer.data
        })

    def create(self, request):
        serializer = CreateChatSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        chat, created = ChatService.create_chat(
            request.user,
            serializer.validated_data['participants'],
            chat_type=serializer.validated_data['chat_type'],
            name=serializer.validated_data.get('name'),
            description=serializer.validated_data.get('description')
        )

        return Response({
            'success': True,
            'data': self.get_serializer(chat).data
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    def retrieve(self, request, pk=None):
        chat = ChatService.get_chat(request.user, pk)
        return Response({'success': True, 'data': self.get_serializer(chat).data})

    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        """Lire (et marquer comme lus) ou envoyer des messages"""
        context = self.get_serializer_context()

        if request.method == 'POST':
            serializer = SendMessageSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data

            message = ChatService.send_message(
                request.user,
                pk,
                content=data.get('content'),
                attachment=data.get('attachment'),
                reply_to=data.get('reply_to'),
                message_type=data['message_type']
            )
            return Response({
                'success': True,
                'data': MessageSerializer(message, context=context).data
            }, status=status.HTTP_201_CREATED)

        messages = ChatService.get_chat_messages(
            request.user,
            pk,
            before=_parse_before(request.query_params.get('before')),
            limit=_positive_int(request.query_params.get('limit'), 'limit', maximum=MAX_PAGE_SIZE)
        )
        return Response({
            'success': True,
            'count': len(messages),
            'data': MessageSerializer(messages, many=True, context=context).data
        })

    @action(detail=True, methods=['post'])
    def participants(self, request, pk=None):
        serializer = AddParticipantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        participant, created = ChatService.add_participant(
            request.user,
            pk,
            serializer.validated_data['user_id'],
            role=serializer.validated_data['role']
        )
        return Response({
            'success': True,
            'data': ChatParticipantSerializer(participant).data
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=True, methods=['patch', 'delete'], url_path=r'participants/(?P<user_id>\d+)')
    def participant(self, request, pk=None, user_id=None):
        """Changer le rôle d'un participant ou le retirer du groupe"""
        if request.method == 'PATCH':
            serializer = UpdateParticipantRoleSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            participant = ChatService.update_participant_role(
                request.user, pk, int(user_id), serializer.validated_data['role']
            )
            return Response({
                'success': True,
                'data': ChatParticipantSerializer(participant).data
            })

        ChatService.remove_participant(request.user, pk, int(user_id))
        return Response({
            'success': True,
            'message': "Participant retiré avec succès"
        })


class MessageViewSet(viewsets.GenericViewSet):
    """API pour agir sur un message"""
    serializer_class = MessageSerializer
    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated]

    def destroy(self, request, pk=None):
        ChatService.delete_message(request.user, pk)
        return Response({
            'success': True,
            'message': "Message supprimé avec succès"
        })

    @action(detail=True, methods=['post'])
    def reactions(self, request, pk=None):
        serializer = EmojiSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reactions = ChatService.add_reaction(request.user, pk, serializer.validated_data['emoji'])
        return Response({
            'success': True,
            'data': ReactionSerializer(reactions, many=True).data
        })

    @action(detail=True, methods=['post'])
    def hide(self, request, pk=None):
        """Supprimer un message pour l'utilisateur actuel"""
        ChatService.hide_message(request.user, pk)
        return Response({
            'success': True,
            'message': "Message masqué"
        })
