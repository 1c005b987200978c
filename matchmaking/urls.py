# matchmaking/urls.py

from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import (
    CandidateListView, SwipeView, MatchViewSet,
    UserPreferenceView, check_match
)

router = SimpleRouter()
router.register(r'matches', MatchViewSet, basename='match')

urlpatterns = [
    path('', CandidateListView.as_view(), name='candidates'),
    path('swipe/', SwipeView.as_view(), name='swipe'),
    path('check-match/<int:user_id>/', check_match, name='check-match'),
    path('preferences/', UserPreferenceView.as_view(), name='preferences'),
    path('', include(router.urls)),
]
