"""
Authorization gate.

A request carries either a bearer session token or an ``X-API-Key`` header.
Each credential kind is resolved to the same ``Identity`` shape, after which
role and ownership checks are strategy-agnostic.
"""
import logging

from api.errors import Forbidden, NotFound, Unauthenticated
from api.services.api_key_service import ApiKeyService, mask_key
from api.services.identity import (  # noqa: F401
    ApiKeyCredential,
    Credential,
    Identity,
    SessionCredential,
    ensure_owner,
    require_role,
)
from api.services.session_service import SessionIssuer

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


class AuthorizationGate:
    def __init__(self, session_issuer: SessionIssuer, api_key_service: ApiKeyService):
        self.session_issuer = session_issuer
        self.api_key_service = api_key_service

    def resolve(self, credential: Credential) -> Identity:
        if isinstance(credential, SessionCredential):
            return self._resolve_session(credential)
        if isinstance(credential, ApiKeyCredential):
            return self._resolve_api_key(credential)
        raise TypeError(f"Unsupported credential: {type(credential).__name__}")

    def _resolve_session(self, credential: SessionCredential) -> Identity:
        claims = self.session_issuer.verify(credential.token)
        return Identity(subject_id=claims.user_id, role=claims.role)

    def _resolve_api_key(self, credential: ApiKeyCredential) -> Identity:
        # InvalidFormat from resolve propagates as a 400
        try:
            api_key = self.api_key_service.resolve(credential.value)
        except NotFound:
            raise Unauthenticated("Invalid API key")
        if not api_key.is_active:
            logger.warning(f"Rejected revoked API key {mask_key(api_key.key)}")
            raise Forbidden("API key has been revoked")
        return Identity(subject_id=api_key.user_id, api_key_id=api_key.id)
