# api/admin.py
from fastapi import APIRouter, Depends, Response, status
from api.dependencies import get_api_key_service, get_user_service, require_admin
from api.models import (
    AdminApiKeyCreate,
    AdminApiKeyResponse,
    AdminUserResponse,
    ApiKeyOwner,
    ApiKeyStatusResponse,
)
from api.services.api_key_service import ApiKeyService
from api.services.user_service import UserService

# Every route here requires a session whose role is ADMIN
router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def _admin_key_response(api_key) -> AdminApiKeyResponse:
    return AdminApiKeyResponse(
        id=api_key.id,
        key=api_key.key,
        is_active=api_key.is_active,
        created_at=api_key.created_at,
        user=ApiKeyOwner(id=api_key.user.id, email=api_key.user.email),
    )


@router.get("/keys", response_model=list[AdminApiKeyResponse], tags=["Admin - API Keys"])
def list_all_api_keys(api_key_service: ApiKeyService = Depends(get_api_key_service)):
    return [_admin_key_response(api_key) for api_key in api_key_service.list_all()]


@router.post(
    "/keys",
    response_model=AdminApiKeyResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Admin - API Keys"],
)
def create_api_key_for_user(
    body: AdminApiKeyCreate,
    api_key_service: ApiKeyService = Depends(get_api_key_service),
):
    return _admin_key_response(api_key_service.generate_for_user(body.user_id))


@router.patch(
    "/keys/{api_key_id}/toggle", response_model=ApiKeyStatusResponse, tags=["Admin - API Keys"]
)
def toggle_api_key(
    api_key_id: int,
    api_key_service: ApiKeyService = Depends(get_api_key_service),
):
    api_key = api_key_service.toggle(api_key_id)
    return ApiKeyStatusResponse(id=api_key.id, is_active=api_key.is_active)


@router.delete(
    "/keys/{api_key_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["Admin - API Keys"]
)
def delete_api_key(
    api_key_id: int,
    api_key_service: ApiKeyService = Depends(get_api_key_service),
):
    api_key_service.delete(api_key_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users", response_model=list[AdminUserResponse], tags=["Admin - Users"])
def list_users(user_service: UserService = Depends(get_user_service)):
    return [
        AdminUserResponse(
            id=user.id,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            api_key_count=count,
        )
        for user, count in user_service.list_users_with_key_counts()
    ]
