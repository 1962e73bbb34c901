"""
Account endpoints
"""

from core.errors import AuthError
from core.ports.gateway import IApiGateway
from models.user import AuthSession, User


class AuthApi:
    """Wrapper over /auth/*"""

    def __init__(self, client: IApiGateway):
        self._client = client

    def login(self, email: str, password: str) -> AuthSession:
        data = self._client.post('/auth/login', body={'email': email, 'password': password}, authenticated=False)
        return self._session(data)

    def register(self, email: str, username: str, password: str) -> AuthSession:
        data = self._client.post(
            '/auth/register',
            body={'email': email, 'username': username, 'password': password},
            authenticated=False,
        )
        return self._session(data)

    def logout(self) -> None:
        self._client.post('/auth/logout')

    def me(self) -> User:
        data = self._client.get('/auth/me')
        if not isinstance(data, dict):
            raise AuthError("Not signed in")
        return User.from_dict(data)

    @staticmethod
    def _session(data) -> AuthSession:
        if not isinstance(data, dict):
            raise AuthError("Invalid authentication response")
        session = AuthSession.from_dict(data)
        if not session.session_token:
            raise AuthError("Authentication response did not include a session token")
        return session
