import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.shortcuts import get_object_or_404
from django.db.models import Q
from django.utils import timezone
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_encode, urlsafe_base64_decode
from .exceptions import ApiError
from .models import Role, Setting, AuditLog
from .pagination import paginate_queryset
from .permissions import require_permission, require_resource_permission, require_role
from .responses import api_response, validation_error_response
from .serializers import (
    UserSerializer, AdminUserSerializer, UserCreateSerializer, ProfileUpdateSerializer,
    ChangePasswordSerializer, ForgotPasswordSerializer, ResetPasswordSerializer,
    RoleSerializer, SettingSerializer, AuditLogSerializer
)
from .utils import create_audit_log

User = get_user_model()
logger = logging.getLogger(__name__)


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role.name if user.role_id else None
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        logger.info(f"User logged in: {response.data['user']['username']}")
        return api_response(response.data, 'Login successful')


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted and disabled users gracefully"""
    def validate(self, attrs):
        try:
            refresh = self.token_class(attrs['refresh'])
        except TokenError:
            raise InvalidToken('Token is invalid or expired.')

        user_id = refresh.payload.get(jwt_settings.USER_ID_CLAIM)
        user = User.objects.filter(**{jwt_settings.USER_ID_FIELD: user_id}).first()
        if user is None:
            raise InvalidToken('Token is invalid. User no longer exists.')
        if not user.is_active:
            raise InvalidToken('User account is disabled.')

        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        return api_response(response.data, 'Token refreshed')


def _issue_tokens(user):
    token = CustomTokenObtainPairSerializer.get_token(user)
    return {'access': str(token.access_token), 'refresh': str(token)}


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"User registered: {user.username} (ID: {user.id})")
        return api_response({
            'user': UserSerializer(user).data,
            **_issue_tokens(user),
        }, 'Registration successful', status.HTTP_201_CREATED)
    return validation_error_response(serializer.errors)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Blacklist the supplied refresh token"""
    refresh = request.data.get('refresh')
    if not refresh:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Refresh token is required')
    try:
        RefreshToken(refresh).blacklist()
    except TokenError:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Token is invalid or expired')
    return api_response(None, 'Logged out successfully')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user, or deactivate the account"""
    user = request.user

    if request.method == 'GET':
        user_data = UserSerializer(user).data
        user_data['is_admin'] = user.is_admin_account
        user_data['permissions'] = list(user.role.permissions) if user.role_id else []
        return api_response(user_data, 'User fetched successfully')
    elif request.method == 'PATCH':
        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return api_response(UserSerializer(user).data, 'Profile updated successfully')
        return validation_error_response(serializer.errors)
    else:  # DELETE
        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"User deactivated own account: {user.username} (ID: {user.id})")
        return api_response(None, 'Account deleted successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    user = request.user
    user.set_password(serializer.validated_data['new_password'])
    user.save()
    return api_response(None, 'Password changed successfully')


@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password(request):
    """
    Issue a password reset token.

    The response is identical whether or not the e-mail exists. Delivery of
    the token is handled by the mail integration, so here it is only logged.
    """
    serializer = ForgotPasswordSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    user = User.objects.filter(email__iexact=serializer.validated_data['email'], is_active=True).first()
    if user:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        logger.info(f"Password reset requested for user {user.id} (uid={uid}, token={token})")
    return api_response(None, 'If the email is registered, a reset link has been sent')


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password(request):
    serializer = ResetPasswordSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    data = serializer.validated_data
    try:
        user = User.objects.get(pk=force_str(urlsafe_base64_decode(data['uid'])))
    except (User.DoesNotExist, ValueError, TypeError, OverflowError):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Invalid or expired reset token')

    if not default_token_generator.check_token(user, data['token']):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Invalid or expired reset token')

    try:
        validate_password(data['new_password'], user)
    except DjangoValidationError as e:
        return validation_error_response({'new_password': list(e.messages)})

    user.set_password(data['new_password'])
    user.save()
    logger.info(f"Password reset completed for user {user.id}")
    return api_response(None, 'Password has been reset successfully')


# Admin user management
@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('users', 'read')])
def user_list(request):
    """List users with search and pagination"""
    queryset = User.objects.select_related('role').order_by('-date_joined')
    search = request.query_params.get('search')
    if search:
        queryset = queryset.filter(
            Q(username__icontains=search) | Q(email__icontains=search) |
            Q(first_name__icontains=search) | Q(last_name__icontains=search) |
            Q(phone__icontains=search)
        )
    role = request.query_params.get('role')
    if role:
        queryset = queryset.filter(role__name=role.upper())
    is_active = request.query_params.get('is_active')
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active.lower() == 'true')

    users, pagination = paginate_queryset(queryset, request, default_limit=20)
    return api_response({
        'users': AdminUserSerializer(users, many=True).data,
        'pagination': pagination,
    }, 'Users fetched successfully')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('users')])
def user_detail(request, pk):
    """Retrieve, update or deactivate a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return api_response(AdminUserSerializer(user).data, 'User fetched successfully')
    elif request.method == 'PATCH':
        serializer = AdminUserSerializer(user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='User', object_id=user.id,
                             object_name=user.username, changes=dict(request.data))
            return api_response(serializer.data, 'User updated successfully')
        return validation_error_response(serializer.errors)
    else:  # DELETE
        if user.pk == request.user.pk:
            raise ApiError(status.HTTP_400_BAD_REQUEST, 'You cannot deactivate your own account')
        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request=request, action='delete', model_name='User', object_id=user.id,
                         object_name=user.username)
        return api_response(None, 'User deactivated successfully')


# Role views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('roles')])
def role_list_create(request):
    """List all roles or create a new role"""
    if request.method == 'GET':
        roles = Role.objects.all()
        return api_response(RoleSerializer(roles, many=True).data, 'Roles fetched successfully')

    serializer = RoleSerializer(data=request.data)
    if serializer.is_valid():
        role = serializer.save()
        create_audit_log(request=request, action='create', model_name='Role', object_id=role.id, object_name=role.name)
        return api_response(serializer.data, 'Role created successfully', status.HTTP_201_CREATED)
    return validation_error_response(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('roles')])
def role_detail(request, pk):
    """Retrieve, update or delete a role"""
    role = get_object_or_404(Role, pk=pk)

    if request.method == 'GET':
        return api_response(RoleSerializer(role).data, 'Role fetched successfully')
    elif request.method in ('PUT', 'PATCH'):
        serializer = RoleSerializer(role, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return api_response(serializer.data, 'Role updated successfully')
        return validation_error_response(serializer.errors)
    else:  # DELETE
        if role.name == Role.SUPER_ADMIN:
            raise ApiError(status.HTTP_400_BAD_REQUEST, 'The SUPER_ADMIN role cannot be deleted')
        role.delete()
        return api_response(None, 'Role deleted successfully')


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('settings')])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings = Setting.objects.all().order_by('key')
        return api_response(SettingSerializer(settings, many=True).data, 'Settings fetched successfully')

    serializer = SettingSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return api_response(serializer.data, 'Setting created successfully', status.HTTP_201_CREATED)
    return validation_error_response(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('settings')])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        return api_response(SettingSerializer(setting).data, 'Setting fetched successfully')
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return api_response(serializer.data, 'Setting updated successfully')
        return validation_error_response(serializer.errors)
    else:  # DELETE
        setting.delete()
        return api_response(None, 'Setting deleted successfully')


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, require_role(Role.SUPER_ADMIN, Role.ADMIN)])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user').all()

    action = request.query_params.get('action')
    if action:
        queryset = queryset.filter(action=action)
    model_name = request.query_params.get('model_name')
    if model_name:
        queryset = queryset.filter(model_name=model_name)
    user_id = request.query_params.get('user')
    if user_id:
        queryset = queryset.filter(user_id=user_id)
    search = request.query_params.get('search')
    if search:
        queryset = queryset.filter(
            Q(object_name__icontains=search) | Q(object_reference__icontains=search) |
            Q(object_id=search)
        )

    logs, pagination = paginate_queryset(queryset, request, default_limit=50)
    return api_response({
        'logs': AuditLogSerializer(logs, many=True).data,
        'pagination': pagination,
    }, 'Audit logs fetched successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_role(Role.SUPER_ADMIN, Role.ADMIN)])
def audit_log_detail(request, pk):
    log = get_object_or_404(AuditLog, pk=pk)
    return api_response(AuditLogSerializer(log).data, 'Audit log fetched successfully')


@api_view(['GET'])
@permission_classes([AllowAny])
def health(request):
    return api_response({'status': 'OK', 'time': timezone.now().isoformat()}, 'Service is healthy')
