# accounts/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.utils.translation import gettext_lazy as _

from .models import User, UserPhoto

class UserPhotoInline(admin.TabularInline):
    model = UserPhoto
    extra = 0
    max_num = 6
    readonly_fields = ('url', 'public_id', 'uploaded_at')

class CustomUserAdmin(UserAdmin):
    fieldsets = (
        (None, {'fields': ('username', 'password')}),
        (_('Informations personnelles'), {'fields': ('email', 'name', 'age', 'gender',
                                                  'bio', 'interests')}),
        (_('Localisation'), {'fields': ('city', 'country', 'latitude', 'longitude')}),
        (_('Profil'), {'fields': ('profile_complete',)}),
        (_('Autorisations'), {'fields': ('is_active', 'is_staff', 'is_superuser',
                                       'groups', 'user_permissions')}),
        (_('Dates importantes'), {'fields': ('last_login', 'date_joined', 'last_active')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'password1', 'password2'),
        }),
    )
    list_display = ('username', 'email', 'name', 'age', 'gender', 'city',
                   'profile_complete', 'is_active', 'last_active')
    list_filter = ('profile_complete', 'is_staff', 'is_superuser', 'is_active', 'gender')
    search_fields = ('username', 'email', 'name', 'city', 'country')
    ordering = ('-date_joined',)
    readonly_fields = ('last_active',)
    inlines = (UserPhotoInline,)

admin.site.register(User, CustomUserAdmin)
