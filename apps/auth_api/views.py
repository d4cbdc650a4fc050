import logging

from django.contrib.auth import get_user_model
from django.utils.timezone import now
from drf_spectacular.utils import extend_schema
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from apps.audit_api.utils import (
    get_client_ip, log_audit_action, log_login, log_login_failed, log_logout, snapshot,
)
from .navigation import build_navigation
from .serializers import (
    LoginSerializer, LogoutSerializer, NavigationItemSerializer, RegisterSerializer,
    SessionSerializer, UserProfileSerializer,
)
from .session import ActorSession

logger = logging.getLogger(__name__)

User = get_user_model()


class RegisterThrottle(AnonRateThrottle):
    scope = 'register'


class LoginThrottle(AnonRateThrottle):
    scope = 'login'


class RegisterView(generics.CreateAPIView):
    """Alta de usuario. Las cuentas nuevas no tienen roles hasta que un administrador los asigne."""
    queryset = User.objects.all()
    serializer_class = RegisterSerializer
    permission_classes = [AllowAny]
    throttle_classes = [RegisterThrottle]

    def perform_create(self, serializer):
        user = serializer.save()
        log_audit_action(user, 'create', table_name=User._meta.db_table, record_id=user.pk,
                         new_values=snapshot(user), request=self.request)
        logger.info("Usuario registrado: %s", user.email)


class LoginView(generics.GenericAPIView):
    serializer_class = LoginSerializer
    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]

    @extend_schema(responses={200: SessionSerializer})
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except ValidationError:
            log_login_failed(request.data.get('email'), request=request)
            raise

        user = serializer.validated_data['user']
        if not user.is_active:
            log_login_failed(user.email, request=request)
            return Response({"detail": "Cuenta inactiva. Contacte al administrador."},
                            status=status.HTTP_403_FORBIDDEN)

        refresh = RefreshToken.for_user(user)
        user.last_login = now()
        user.last_login_ip_address = get_client_ip(request)
        user.save(update_fields=['last_login', 'last_login_ip_address'])

        session = ActorSession(user)
        request._actor_session = session
        log_login(user, request=request)
        logger.info("Inicio de sesión de %s con roles %s", user.email, sorted(session.roles))

        return Response({
            'access': str(refresh.access_token),
            'refresh': str(refresh),
            'session': SessionSerializer(session).data,
        })


class LogoutView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(request=LogoutSerializer)
    def post(self, request):
        refresh_token = request.COOKIES.get('refresh_token') or request.data.get('refresh')

        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except TokenError:
                logger.debug("Refresh token inválido o expirado en logout")

        if request.user and request.user.is_authenticated:
            log_logout(request.user, request=request)
            ActorSession.for_request(request).invalidate()

        response = Response({"detail": "Sesión cerrada exitosamente."}, status=status.HTTP_200_OK)
        response.delete_cookie('access_token')
        response.delete_cookie('refresh_token')
        return response


class RefreshView(TokenRefreshView):
    """Renueva el token y vuelve a resolver la sesión del actor."""

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        if response.status_code == status.HTTP_200_OK:
            token = AccessToken(response.data['access'])
            user = User.objects.filter(pk=token[api_settings.USER_ID_CLAIM], is_active=True).first()
            response.data['session'] = SessionSerializer(ActorSession(user)).data
        return response


class MeView(generics.RetrieveUpdateAPIView):
    serializer_class = UserProfileSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'patch', 'head', 'options']

    def get_object(self):
        return self.request.user

    @extend_schema(responses={200: SessionSerializer})
    def get(self, request, *args, **kwargs):
        return Response(SessionSerializer(ActorSession.for_request(request)).data)


class RefreshPermissionsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: SessionSerializer})
    def post(self, request):
        session = ActorSession.for_request(request)
        session.refresh()
        return Response(SessionSerializer(session).data)


class NavigationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: NavigationItemSerializer(many=True)})
    def get(self, request):
        return Response(build_navigation(ActorSession.for_request(request)))
