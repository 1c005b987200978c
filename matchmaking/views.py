# matchmaking/views.py

from rest_framework import viewsets, generics, status
from rest_framework.decorators import api_view, permission_classes, action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsProfileComplete
from messaging.serializers import MessageSerializer, MatchMessageSerializer
from messaging.services import MatchMessageService
from vib3.exceptions import NotFoundError
from .models import UserPreference
from .serializers import (
    SwipeSerializer, MatchSerializer, UserPreferenceSerializer,
    UserDiscoverySerializer
)
from .services import MatchService


class CandidateListView(generics.GenericAPIView):
    """API pour découvrir des profils à swiper"""
    serializer_class = UserDiscoverySerializer
    permission_classes = [IsAuthenticated, IsProfileComplete]

    def get(self, request):
        ranked = MatchService.find_candidates(request.user)
        candidates = [candidate for candidate, _ in ranked]
        distances = {candidate.id: distance for candidate, distance in ranked}

        serializer = self.get_serializer(
            candidates,
            many=True,
            context={'request': request, 'distances': distances}
        )
        return Response({
            'success': True,
            'count': len(candidates),
            'data': serializer.data
        })


class SwipeView(generics.GenericAPIView):
    """API pour enregistrer un like ou un pass"""
    serializer_class = SwipeSerializer
    permission_classes = [IsAuthenticated, IsProfileComplete]

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        match, matched = MatchService.record_swipe(
            request.user,
            serializer.validated_data['target_user_id'],
            serializer.validated_data['liked']
        )

        return Response({
            'success': True,
            'data': {
                'matched': matched,
                'match_id': match.id if matched else None
            }
        }, status=status.HTTP_200_OK)


class MatchViewSet(viewsets.ReadOnlyModelViewSet):
    """API pour consulter les matchs et leurs messages"""
    serializer_class = MatchSerializer
    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return MatchService.list_matches(self.request.user)

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'count': len(serializer.data), 'data': serializer.data})

    def retrieve(self, request, pk=None):
        match = self.get_queryset().filter(pk=pk).first()
        if match is None:
            raise NotFoundError("Match non trouvé")
        return Response({'success': True, 'data': self.get_serializer(match).data})

    @action(detail=True, methods=['get', 'post'])
    def messages(self, request, pk=None):
        """Messagerie simple attachée à un match"""
        if request.method == 'POST':
            serializer = MatchMessageSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            message = MatchMessageService.send(request.user, pk, serializer.validated_data['text'])
            return Response({
                'success': True,
                'data': MessageSerializer(message, context={'request': request}).data
            }, status=status.HTTP_201_CREATED)

        messages = MatchMessageService.list_messages(request.user, pk)
        return Response({
            'success': True,
            'data': MessageSerializer(messages, many=True, context={'request': request}).data
        })


class UserPreferenceView(generics.GenericAPIView):
    """API pour gérer les préférences de recherche"""
    serializer_class = UserPreferenceSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        # Obtenir ou créer les préférences de l'utilisateur
        obj, created = UserPreference.objects.get_or_create(user=self.request.user)
        return obj

    def get(self, request):
        return Response({'success': True, 'data': self.get_serializer(self.get_object()).data})

    def put(self, request):
        return self._update(request, partial=False)

    def patch(self, request):
        return self._update(request, partial=True)

    def _update(self, request, partial):
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response({
            'success': True,
            'data': serializer.data,
            'message': "Préférences mises à jour avec succès"
        })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def check_match(request, user_id):
    """Vérifier s'il existe un match avec un utilisateur"""
    is_match, match_id = MatchService.check_mutual_match(request.user, user_id)

    return Response({
        'success': True,
        'data': {
            'is_match': is_match,
            'match_id': match_id
        }
    }, status=status.HTTP_200_OK)
