# grabcoffee/client/auth.py
"""
Logowanie: haslo, rejestracja z profilem, OAuth (Google, Apple) przez
przegladarke z powrotem na deep link grabcoffee://login-callback.
Wynik to zawsze AuthSuccess / AuthCancelled / AuthFailed, nigdy wyjatek.
"""
from urllib.parse import parse_qs, urlparse

from sqlalchemy.exc import SQLAlchemyError

from grabcoffee.client.ports import AuthError, AuthProvider, AuthSession, Browser
from grabcoffee.client.results import AuthCancelled, AuthFailed, AuthSuccess
from grabcoffee.data.client import DataClient
from grabcoffee.services.profile_service import ProfileService
from grabcoffee.utils.settings import AUTH_REDIRECT_URL
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6

OAUTH_QUERY_PARAMS = {
    "google": {"access_type": "offline", "prompt": "consent"},
    "apple": {"response_mode": "form_post"},
}


class AuthWorkflow:
    def __init__(
        self,
        auth: AuthProvider,
        browser: Browser,
        data: DataClient,
        redirect_url: str = AUTH_REDIRECT_URL,
    ):
        self.auth = auth
        self.browser = browser
        self.data = data
        self.redirect_url = redirect_url

    def sign_in(self, email: str, password: str):
        if not email or not password:
            return AuthFailed("Please enter your email and password.")

        try:
            session = self.auth.sign_in_with_password(email.strip(), password)
        except AuthError as e:
            logger.error(f"Sign in error: {e}")
            return AuthFailed(str(e))

        logger.info(f"User {session.user_id} signed in")
        return AuthSuccess(session)

    def sign_up(self, full_name: str, email: str, password: str, phone: str | None = None):
        if not full_name or not full_name.strip():
            return AuthFailed("Please enter your full name.")
        if not email or not email.strip():
            return AuthFailed("Please enter your email.")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            return AuthFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        try:
            session = self.auth.sign_up(
                email.strip(),
                password,
                {"full_name": full_name.strip(), "phone": (phone or "").strip()},
            )
        except AuthError as e:
            logger.error(f"Sign up error: {e}")
            return AuthFailed(str(e))

        try:
            ProfileService(self.data.session).create_profile(
                session.user_id, full_name, session.email or email, phone
            )
        except SQLAlchemyError as e:
            logger.error(f"Profile insert error for {session.user_id}: {e}")
            self.data.session.rollback()
            return AuthFailed("Your account was created but we could not save your profile.")

        logger.info(f"User {session.user_id} signed up")
        return AuthSuccess(session)

    def sign_in_with_oauth(self, provider: str):
        if provider not in OAUTH_QUERY_PARAMS:
            return AuthFailed(f"Unsupported sign in provider: {provider}")

        try:
            url = self.auth.oauth_url(provider, self.redirect_url, OAUTH_QUERY_PARAMS[provider])
        except AuthError as e:
            logger.error(f"{provider} OAuth error: {e}")
            return AuthFailed(str(e))

        if not url:
            return AuthFailed("No authorization URL returned.")

        result = self.browser.open_auth_session(url, self.redirect_url)

        if result.type == "cancel" or result.type == "dismiss":
            logger.info(f"{provider} sign in cancelled")
            return AuthCancelled()

        if result.type != "success" or not result.url:
            return AuthFailed(f"Sign in did not complete ({result.type}).")

        return self.handle_deep_link(result.url)

    def handle_deep_link(self, url: str):
        query = parse_qs(urlparse(url).query)
        code = (query.get("code") or [None])[0]

        if not code:
            error = (query.get("error_description") or query.get("error") or [None])[0]
            return AuthFailed(error or "No authorization code found in the callback URL.")

        try:
            session = self.auth.exchange_code_for_session(url)
        except AuthError as e:
            logger.error(f"Code exchange error: {e}")
            return AuthFailed(str(e))

        if session is None:
            return AuthFailed("Could not establish a session.")

        self._ensure_profile(session)
        logger.info(f"User {session.user_id} signed in via callback")
        return AuthSuccess(session)

    def _ensure_profile(self, session: AuthSession) -> None:
        #profil dla kont OAuth zakladany przy pierwszym logowaniu
        try:
            ProfileService(self.data.session).create_profile(
                session.user_id, session.full_name or "", session.email or ""
            )
        except SQLAlchemyError as e:
            logger.error(f"Profile insert error for {session.user_id}: {e}")
            self.data.session.rollback()
