from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    """Staff credentials; usernames are matched after trimming."""
    username = serializers.CharField(max_length=150, error_messages={'blank': 'Username is required'})
    password = serializers.CharField(max_length=128, trim_whitespace=False, style={'input_type': 'password'},
                                     error_messages={'blank': 'Password is required'})


class RefreshSerializer(serializers.Serializer):
    refresh = serializers.CharField(error_messages={'blank': 'Refresh token is required'})
