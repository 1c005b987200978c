# accounts/serializers.py

from rest_framework import serializers
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

from .models import UserPhoto

User = get_user_model()


class UserPhotoSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserPhoto
        fields = ('id', 'url', 'public_id', 'is_primary', 'uploaded_at')
        read_only_fields = fields


class PublicUserSerializer(serializers.ModelSerializer):
    """Champs publics d'un profil, tels que vus par les autres utilisateurs"""
    photos = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ('id', 'name', 'age', 'gender', 'bio', 'interests',
                 'photos', 'city', 'country')
        read_only_fields = fields

    def get_photos(self, obj):
        return [photo.url for photo in obj.photos.all()]


class UserSerializer(serializers.ModelSerializer):
    photos = UserPhotoSerializer(many=True, read_only=True)
    latitude = serializers.FloatField(min_value=-90, max_value=90, allow_null=True, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, allow_null=True, required=False)

    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'name', 'age', 'gender', 'bio',
                 'interests', 'latitude', 'longitude', 'city', 'country',
                 'photos', 'profile_complete', 'is_active', 'last_active',
                 'created_at')
        read_only_fields = ('id', 'username', 'email', 'profile_complete',
                           'is_active', 'last_active', 'created_at')

    def validate_interests(self, value):
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError("Les centres d'intérêt doivent être une liste de textes.")
        # Ensemble de chaînes: sans doublons, en gardant l'ordre
        cleaned = []
        for item in (interest.strip() for interest in value):
            if item and item not in cleaned:
                cleaned.append(item)
        return cleaned

    def validate(self, attrs):
        has_latitude = 'latitude' in attrs
        has_longitude = 'longitude' in attrs
        if has_latitude != has_longitude:
            raise serializers.ValidationError(
                {"location": "La latitude et la longitude doivent être fournies ensemble."}
            )
        return attrs

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()

        # Vérifier si le profil est complet
        instance.update_profile_completeness()

        return instance


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=True, validators=[validate_password])
    password2 = serializers.CharField(write_only=True, required=True)

    class Meta:
        model = User
        fields = ('email', 'name', 'gender', 'password', 'password2')
        extra_kwargs = {
            'name': {'required': True, 'allow_blank': False},
        }

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Cet email est déjà utilisé.")
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password2']:
            raise serializers.ValidationError({"password": "Les mots de passe ne correspondent pas."})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password2')
        password = validated_data.pop('password')
        username = self.generate_unique_username(validated_data['email'])
        return User.objects.create_user(username=username, password=password, **validated_data)

    def generate_unique_username(self, email):
        """Génère un nom d'utilisateur unique à partir de l'email"""
        base_username = email.split('@')[0] or 'user'

        username = base_username
        counter = 1

        while User.objects.filter(username=username).exists():
            username = f"{base_username}{counter}"
            counter += 1

        return username


class LocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)


class PhotoUploadSerializer(serializers.Serializer):
    photo = serializers.FileField()

    def validate_photo(self, value):
        content_type = getattr(value, 'content_type', '') or ''
        if not content_type.startswith('image/'):
            raise serializers.ValidationError("Seules les images sont acceptées.")

        max_size = getattr(settings, 'MAX_PHOTO_UPLOAD_SIZE', 5 * 1024 * 1024)
        if value.size > max_size:
            raise serializers.ValidationError(
                f"Fichier trop volumineux. Taille maximale: {max_size // (1024 * 1024)} Mo."
            )
        return value

    def validate(self, attrs):
        user = self.context['request'].user
        max_photos = getattr(settings, 'MAX_PROFILE_PHOTOS', 6)
        if user.photos.count() >= max_photos:
            raise serializers.ValidationError(
                {"photo": f"Vous ne pouvez pas avoir plus de {max_photos} photos."}
            )
        return attrs
