import logging

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

logger = logging.getLogger(__name__)

ACCESS_COOKIE = 'access_token'


class DualJWTAuthentication(JWTAuthentication):
    """
    Acepta el token de acceso en el header Authorization o en la cookie
    httpOnly `access_token`. Un token inválido en una fuente no impide
    probar la otra.
    """

    def authenticate(self, request):
        try:
            header_auth = super().authenticate(request)
            if header_auth is not None:
                return header_auth
        except (InvalidToken, TokenError):
            logger.debug("Token inválido en header Authorization, probando cookie")

        raw_token = request.COOKIES.get(ACCESS_COOKIE)
        if raw_token is None:
            return None
        try:
            validated_token = self.get_validated_token(raw_token)
        except (InvalidToken, TokenError):
            return None
        return (self.get_user(validated_token), validated_token)
