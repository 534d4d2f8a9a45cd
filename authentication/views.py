import logging

from rest_framework import generics, status, permissions, filters
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from django.db import connection
from django.utils import timezone
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, OpenApiExample

from .models import Profile
from .serializers import (
    UserSerializer, LoginSerializer, RegisterSerializer, StaffCreateSerializer,
    ProfileSerializer, RoleUpdateSerializer
)
from .permissions import (
    HasPermission, Permissions, permissions_for_role, accessible_screens, require_permission
)

logger = logging.getLogger(__name__)


# =============== AUTHENTICATION VIEWS ===============

class CustomTokenObtainPairView(TokenObtainPairView):
    """
    JWT login for staff accounts.

    Returns the token pair together with the user's role, the permissions
    granted to that role and the screens the role may open.
    """
    serializer_class = LoginSerializer

    @extend_schema(
        summary="Staff Login with JWT Token",
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                    'role': {'type': 'string', 'description': 'Staff role'},
                    'permissions': {'type': 'array', 'items': {'type': 'string'}},
                    'screens': {'type': 'array', 'items': {'type': 'string'}},
                }
            },
            400: {'description': 'Invalid credentials'},
        },
        examples=[
            OpenApiExample(
                'Cashier Login',
                value={"email": "cashier@brewpos.local", "password": "SecurePassword123!"}
            ),
        ]
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data['user']

        user.last_login_at = timezone.now()
        user.save(update_fields=['last_login_at'])

        role = user.role
        refresh = RefreshToken.for_user(user)
        refresh['role'] = role

        return Response({
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserSerializer(user).data,
            'role': role,
            'permissions': permissions_for_role(role),
            'screens': accessible_screens(role),
        }, status=status.HTTP_200_OK)


@extend_schema(
    summary="Register a staff account",
    description="Public sign-up. New accounts always start with the cashier role.",
    request=RegisterSerializer,
    responses={201: UserSerializer, 400: {'description': 'Validation errors'}},
)
@api_view(['POST'])
@permission_classes([permissions.AllowAny])
def register(request):
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    logger.info(f"New account registered: {user.email}")
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


# =============== USER PROFILE ===============

class MyProfileView(generics.RetrieveUpdateAPIView):
    """
    get: Current user's profile, role and screens
    put/patch: Update own full name (role changes go through the staff endpoints)
    """
    serializer_class = ProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        profile, _ = Profile.objects.get_or_create(
            user=self.request.user,
            defaults={'full_name': self.request.user.email}
        )
        return profile


# =============== STAFF MANAGEMENT ===============

class StaffListCreateView(generics.ListCreateAPIView):
    """
    get: List staff profiles
    post: Create a staff account with a role (admins only)
    """
    queryset = Profile.objects.select_related('user').all()
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['full_name', 'user__email']
    ordering_fields = ['full_name', 'role', 'created_at']
    ordering = ['full_name']

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return StaffCreateSerializer
        return ProfileSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [HasPermission(Permissions.MANAGE_STAFF)]
        return [HasPermission(Permissions.VIEW_STAFF)]

    def get_queryset(self):
        queryset = super().get_queryset()
        role = self.request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"{request.user.email} created staff account {user.email} as {user.profile.role}")
        return Response(ProfileSerializer(user.profile).data, status=status.HTTP_201_CREATED)


class StaffDetailView(generics.RetrieveAPIView):
    """Get a staff profile"""
    queryset = Profile.objects.select_related('user').all()
    serializer_class = ProfileSerializer
    lookup_field = 'user_id'

    def get_permissions(self):
        return [HasPermission(Permissions.VIEW_STAFF)]


@extend_schema(
    summary="Change a staff member's role",
    description="Only admin-equivalent roles (admin, owner) may change roles.",
    request=RoleUpdateSerializer,
    responses={200: ProfileSerializer, 403: {'description': 'Not an admin'}},
)
@api_view(['PATCH', 'PUT'])
@permission_classes([require_permission(Permissions.CHANGE_ROLES)])
def update_staff_role(request, user_id):
    profile = get_object_or_404(Profile.objects.select_related('user'), user_id=user_id)
    serializer = RoleUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    old_role = profile.role
    profile.role = serializer.validated_data['role']
    profile.save(update_fields=['role', 'updated_at'])
    logger.info(f"{request.user.email} changed role of {profile.user.email} from {old_role} to {profile.role}")

    return Response(ProfileSerializer(profile).data)


# =============== SYSTEM ===============

@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_check(request):
    """Liveness probe that also checks the database connection"""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        database = 'ok'
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        database = 'unavailable'

    return Response({
        'status': 'healthy' if database == 'ok' else 'degraded',
        'database': database,
        'timestamp': timezone.now(),
    }, status=status.HTTP_200_OK if database == 'ok' else status.HTTP_503_SERVICE_UNAVAILABLE)
