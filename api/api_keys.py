from fastapi import APIRouter, Depends, Query, status
from api.dependencies import get_api_key_service, get_current_identity
from api.models import ApiKeyResponse, ApiKeyStatusResponse
from api.services.api_key_service import ApiKeyService
from api.services.identity import Identity

router = APIRouter(prefix="/keys", tags=["User - API Keys"])


@router.post("/generate", response_model=ApiKeyResponse, status_code=status.HTTP_201_CREATED)
def generate_api_key(
    identity: Identity = Depends(get_current_identity),
    api_key_service: ApiKeyService = Depends(get_api_key_service),
):
    api_key = api_key_service.generate(identity.subject_id)
    return ApiKeyResponse.model_validate(api_key)


@router.get("", response_model=list[ApiKeyResponse])
def list_api_keys(
    active_only: bool = Query(False, alias="activeOnly"),
    identity: Identity = Depends(get_current_identity),
    api_key_service: ApiKeyService = Depends(get_api_key_service),
):
    api_keys = api_key_service.list_for_user(identity.subject_id, active_only=active_only)
    return [ApiKeyResponse.model_validate(api_key) for api_key in api_keys]


@router.patch("/{api_key_id}/revoke", response_model=ApiKeyStatusResponse)
def revoke_api_key(
    api_key_id: int,
    identity: Identity = Depends(get_current_identity),
    api_key_service: ApiKeyService = Depends(get_api_key_service),
):
    api_key = api_key_service.revoke_owned(api_key_id, identity)
    return ApiKeyStatusResponse(id=api_key.id, is_active=api_key.is_active)
