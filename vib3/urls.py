# vib3/urls.py

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/accounts/', include('accounts.urls')),
    path('api/match/', include('matchmaking.urls')),
    path('api/', include('messaging.urls')),
]
