# api/dependencies.py
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from api.config import Settings
from api.errors import Unauthenticated
from api.services.access_log_service import AccessLogService
from api.services.api_key_service import ApiKeyService
from api.services.authorization import API_KEY_HEADER, AuthorizationGate, require_role
from api.services.identity import ApiKeyCredential, Identity, SessionCredential
from api.services.receipt_service import ReceiptService
from api.services.session_service import SessionIssuer
from api.services.user_service import UserService
from db.models.user import ROLE_ADMIN
from db.repositories.api_key_repository import ApiKeyRepository
from db.repositories.log_repository import LogRepository
from db.repositories.user_repository import UserRepository

_bearer_scheme = HTTPBearer(auto_error=False, description="Session token from /auth/login")
_api_key_scheme = APIKeyHeader(
    name=API_KEY_HEADER, auto_error=False, description="API key (format: wp_xxxxx...)"
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_mailer(request: Request):
    return request.app.state.mailer


def get_session_issuer(settings: Settings = Depends(get_settings)) -> SessionIssuer:
    return SessionIssuer(settings.jwt_secret)


def get_user_service(
    db: Session = Depends(get_db),
    session_issuer: SessionIssuer = Depends(get_session_issuer),
) -> UserService:
    return UserService(UserRepository(db), session_issuer)


def get_api_key_service(db: Session = Depends(get_db)) -> ApiKeyService:
    return ApiKeyService(ApiKeyRepository(db), UserRepository(db))


def get_access_log_service(db: Session = Depends(get_db)) -> AccessLogService:
    return AccessLogService(LogRepository(db))


def get_receipt_service(
    db: Session = Depends(get_db),
    mailer=Depends(get_mailer),
    settings: Settings = Depends(get_settings),
    access_log: AccessLogService = Depends(get_access_log_service),
) -> ReceiptService:
    return ReceiptService(
        mailer,
        access_log,
        ApiKeyRepository(db),
        from_email=settings.from_email,
        sender_name=settings.sender_name,
    )


def get_authorization_gate(
    session_issuer: SessionIssuer = Depends(get_session_issuer),
    api_key_service: ApiKeyService = Depends(get_api_key_service),
) -> AuthorizationGate:
    return AuthorizationGate(session_issuer, api_key_service)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    gate: AuthorizationGate = Depends(get_authorization_gate),
) -> Identity:
    """Bearer-session path"""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Missing or invalid authorization header")
    return gate.resolve(SessionCredential(token=credentials.credentials))


def get_api_key_identity(
    api_key: Optional[str] = Depends(_api_key_scheme),
    gate: AuthorizationGate = Depends(get_authorization_gate),
) -> Identity:
    """API-key path"""
    if not api_key:
        raise Unauthenticated(f"Missing {API_KEY_HEADER} header")
    return gate.resolve(ApiKeyCredential(value=api_key))


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    return require_role(identity, ROLE_ADMIN)
