# matchmaking/serializers.py

from rest_framework import serializers
from django.contrib.auth import get_user_model

from accounts.serializers import PublicUserSerializer
from .models import Match, UserPreference

User = get_user_model()


class StrictBooleanField(serializers.Field):
    """Booléen JSON uniquement: 'true', 1, etc. sont refusés"""
    default_error_messages = {
        'invalid': "Doit être un booléen."
    }

    def to_internal_value(self, data):
        if not isinstance(data, bool):
            self.fail('invalid')
        return data

    def to_representation(self, value):
        return bool(value)


class UserPreferenceSerializer(serializers.ModelSerializer):
    genders = serializers.ListField(
        child=serializers.ChoiceField(choices=User.GENDER_CHOICES),
        allow_empty=True
    )

    class Meta:
        model = UserPreference
        fields = ('genders', 'min_age', 'max_age', 'distance', 'updated_at')
        read_only_fields = ('updated_at',)

    def validate_genders(self, value):
        return list(dict.fromkeys(value))

    def validate(self, attrs):
        min_age = attrs.get('min_age', self.instance.min_age if self.instance else 18)
        max_age = attrs.get('max_age', self.instance.max_age if self.instance else 120)
        if min_age > max_age:
            raise serializers.ValidationError(
                {"min_age": "L'âge minimum doit être inférieur ou égal à l'âge maximum."}
            )
        return attrs


class SwipeSerializer(serializers.Serializer):
    target_user_id = serializers.IntegerField()
    liked = StrictBooleanField()


class MatchSerializer(serializers.ModelSerializer):
    """Un match vu par l'un des deux utilisateurs: seul l'autre profil est exposé"""
    user = serializers.SerializerMethodField()

    class Meta:
        model = Match
        fields = ('id', 'user', 'matched', 'matched_at', 'created_at', 'updated_at')
        read_only_fields = fields

    def get_user(self, obj):
        request = self.context.get('request')
        if not request or not hasattr(request, 'user'):
            return None
        return PublicUserSerializer(obj.other_user(request.user)).data


class UserDiscoverySerializer(PublicUserSerializer):
    distance = serializers.SerializerMethodField()

    class Meta(PublicUserSerializer.Meta):
        fields = PublicUserSerializer.Meta.fields + ('distance',)
        read_only_fields = fields

    def get_distance(self, obj):
        distance = self.context.get('distances', {}).get(obj.id)
        if distance is None:
            return None
        return round(distance, 1)
