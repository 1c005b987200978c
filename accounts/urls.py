# accounts/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
)

from .views import (
    UserViewSet, RegisterView, UserPhotoViewSet,
    get_verification_status
)

router = DefaultRouter()
router.register(r'users', UserViewSet, basename='user')
router.register(r'photos', UserPhotoViewSet, basename='user-photo')

urlpatterns = [
    path('', include(router.urls)),
    path('register/', RegisterView.as_view(), name='register'),
    path('token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('verification-status/', get_verification_status, name='verification-status'),
]
