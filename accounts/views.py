# accounts/views.py

from django.contrib.auth import get_user_model
from rest_framework import viewsets, generics, mixins, status
from rest_framework.decorators import api_view, permission_classes, action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework_simplejwt.tokens import RefreshToken

from vib3.exceptions import NotFoundError
from .models import UserPhoto
from .permissions import get_missing_profile_fields
from .serializers import (
    UserSerializer, RegisterSerializer, LocationSerializer,
    UserPhotoSerializer, PhotoUploadSerializer
)
from .services import PhotoService, AccountService

User = get_user_model()


class UserViewSet(viewsets.GenericViewSet):
    """API endpoint pour la gestion du profil de l'utilisateur connecté"""
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return User.objects.filter(id=self.request.user.id)

    @action(detail=False, methods=['get', 'put', 'patch', 'delete'])
    def me(self, request):
        user = request.user

        if request.method == 'GET':
            serializer = self.get_serializer(user)
            return Response({'success': True, 'data': serializer.data})

        if request.method == 'DELETE':
            AccountService.delete_account(user)
            return Response({
                'success': True,
                'message': "Votre compte a été définitivement supprimé"
            }, status=status.HTTP_200_OK)

        serializer = self.get_serializer(user, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response({
            'success': True,
            'data': serializer.data,
            'message': "Profil mis à jour avec succès"
        })

    @action(detail=False, methods=['post'])
    def update_location(self, request):
        serializer = LocationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        for attr, value in serializer.validated_data.items():
            setattr(user, attr, value)
        user.save(update_fields=list(serializer.validated_data.keys()))

        return Response({
            'success': True,
            'data': serializer.validated_data,
            'message': "Localisation mise à jour avec succès"
        }, status=status.HTTP_200_OK)


class RegisterView(generics.CreateAPIView):
    """API endpoint pour l'inscription utilisateur"""
    queryset = User.objects.all()
    serializer_class = RegisterSerializer
    permission_classes = [AllowAny]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        # Générer les tokens JWT
        refresh = RefreshToken.for_user(user)

        return Response({
            'success': True,
            'data': {
                'refresh': str(refresh),
                'access': str(refresh.access_token),
                'user': UserSerializer(user).data
            }
        }, status=status.HTTP_201_CREATED)


class UserPhotoViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """API endpoint pour la gestion des photos utilisateur"""
    serializer_class = UserPhotoSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def get_queryset(self):
        return UserPhoto.objects.filter(user=self.request.user)

    def get_photo(self, pk):
        try:
            return self.get_queryset().get(pk=pk)
        except UserPhoto.DoesNotExist:
            raise NotFoundError("Photo non trouvée")

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'success': True, 'data': serializer.data})

    def create(self, request):
        serializer = PhotoUploadSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)

        photo = PhotoService.add_photo(request.user, serializer.validated_data['photo'])

        return Response({
            'success': True,
            'message': "Photo téléversée avec succès",
            'data': {
                'photo': UserPhotoSerializer(photo).data,
                'photos': UserPhotoSerializer(self.get_queryset(), many=True).data
            }
        }, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        photo = self.get_photo(pk)
        PhotoService.remove_photo(request.user, photo)

        return Response({
            'success': True,
            'message': "Photo supprimée avec succès",
            'data': {'photos': UserPhotoSerializer(self.get_queryset(), many=True).data}
        }, status=status.HTTP_200_OK)

    @action(detail=True, methods=['post'])
    def set_primary(self, request, pk=None):
        photo = self.get_photo(pk)
        photo.is_primary = True
        photo.save()
        return Response({
            'success': True,
            'message': "Photo principale définie avec succès"
        }, status=status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_verification_status(request):
    """Endpoint pour connaître ce qui manque au profil"""
    missing = get_missing_profile_fields(request.user)

    return Response({
        'success': True,
        'data': {
            'is_profile_complete': not any(missing.values()),
            'missing_fields': missing
        }
    }, status=status.HTTP_200_OK)
