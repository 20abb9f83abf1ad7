"""Federated sign-in with Google and Apple identity tokens.

The device obtains the provider's ID token; the server verifies it and
finds or creates the matching account.
"""
import logging

import jwt
import requests

from hundred_days.context import utcnow
from hundred_days.errors import AuthenticationError, ExternalServiceError, ValidationError
from hundred_days.extensions import db
from hundred_days.models.user import User

logger = logging.getLogger(__name__)


class GoogleTokenVerifier:
    provider = "google"

    def __init__(self, config, session=None):
        self.client_id = config["GOOGLE_CLIENT_ID"]
        self.tokeninfo_url = config["GOOGLE_TOKENINFO_URL"]
        self.timeout = config.get("HTTP_TIMEOUT", 10)
        self.session = session or requests.Session()

    def verify(self, id_token):
        try:
            response = self.session.get(self.tokeninfo_url, params={"id_token": id_token}, timeout=self.timeout)
        except requests.RequestException as e:
            logging.error(f"Google token verification error: {e}")
            raise ExternalServiceError("Couldn't reach Google. Please try again.") from e

        if response.status_code != 200:
            raise AuthenticationError("Google sign-in failed. Please try again.")

        claims = response.json()
        if claims.get("aud") != self.client_id:
            logger.warning(f"Google token issued for another client: {claims.get('aud')}")
            raise AuthenticationError("Google sign-in failed. Please try again.")
        if not claims.get("sub") or not claims.get("email"):
            raise AuthenticationError("Google account has no email address")

        return {
            "uid": claims["sub"],
            "email": claims["email"].lower(),
            "display_name": claims.get("name"),
            "photo_url": claims.get("picture"),
        }


class AppleTokenVerifier:
    provider = "apple"

    def __init__(self, config, jwk_client=None):
        self.audience = config["APPLE_BUNDLE_ID"]
        self.issuer = config["APPLE_ISSUER"]
        self.jwk_client = jwk_client or jwt.PyJWKClient(config["APPLE_KEYS_URL"])

    def verify(self, id_token):
        try:
            signing_key = self.jwk_client.get_signing_key_from_jwt(id_token)
            claims = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.audience,
                issuer=self.issuer,
            )
        except jwt.PyJWKClientConnectionError as e:
            logging.error(f"Apple key fetch error: {e}")
            raise ExternalServiceError("Couldn't reach Apple. Please try again.") from e
        except jwt.PyJWTError as e:
            logger.warning(f"Apple token rejected: {e}")
            raise AuthenticationError("Apple sign-in failed. Please try again.") from e

        if not claims.get("email"):
            raise AuthenticationError("Apple account has no email address")
        return {
            "uid": claims["sub"],
            "email": claims["email"].lower(),
            "display_name": None,
            "photo_url": None,
        }


def default_verifiers(config):
    return {
        "google": GoogleTokenVerifier(config),
        "apple": AppleTokenVerifier(config),
    }


def sign_in_with_provider(config, provider, id_token, display_name=None, verifiers=None):
    """Verify ``id_token`` and return ``(user, created)``."""
    verifiers = verifiers or default_verifiers(config)
    verifier = verifiers.get(provider)
    if verifier is None:
        raise ValidationError(f"Unsupported sign-in provider: {provider}")

    identity = verifier.verify(id_token)

    user = User.query.filter_by(auth_provider=provider, provider_uid=identity["uid"]).first()
    created = False
    if user is None:
        if User.query.filter_by(email=identity["email"]).first():
            raise ValidationError("An account with this email already exists. Sign in with your password.", status_code=409, code="email_in_use")
        user = User(
            email=identity["email"],
            auth_provider=provider,
            provider_uid=identity["uid"],
            display_name=display_name or identity["display_name"],
            photo_url=identity["photo_url"],
        )
        db.session.add(user)
        created = True

    user.last_active = utcnow()
    db.session.commit()
    logger.info(f"{provider} sign-in for user {user.id} (new={created})")
    return user, created
