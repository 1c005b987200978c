# matchmaking/admin.py

from django.contrib import admin
from .models import Match, Swipe, UserPreference

class SwipeInline(admin.TabularInline):
    model = Swipe
    extra = 0
    readonly_fields = ('user', 'liked', 'created_at')
    can_delete = False

@admin.register(Match)
class MatchAdmin(admin.ModelAdmin):
    list_display = ('id', 'user1', 'user2', 'matched', 'matched_at', 'created_at')
    list_filter = ('matched', 'created_at')
    search_fields = ('user1__username', 'user1__email', 'user2__username', 'user2__email')
    date_hierarchy = 'created_at'
    inlines = [SwipeInline]

@admin.register(Swipe)
class SwipeAdmin(admin.ModelAdmin):
    list_display = ('match', 'user', 'liked', 'created_at')
    list_filter = ('liked', 'created_at')
    search_fields = ('user__username', 'user__email')
    date_hierarchy = 'created_at'

@admin.register(UserPreference)
class UserPreferenceAdmin(admin.ModelAdmin):
    list_display = ('user', 'genders', 'min_age', 'max_age', 'distance', 'updated_at')
    list_filter = ('created_at', 'updated_at')
    search_fields = ('user__username', 'user__email')
    date_hierarchy = 'updated_at'
