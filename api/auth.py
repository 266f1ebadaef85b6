from fastapi import APIRouter, Depends, Request, status
from api.models import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from api.dependencies import get_current_identity, get_user_service
from api.rate_limit import limiter
from api.services.identity import Identity
from api.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/hour")  # Strict limit for signup
def register(
    request: Request,
    body: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
):
    user, token = user_service.register(body.email, body.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")  # Prevent brute force
def login(
    request: Request,
    body: LoginRequest,
    user_service: UserService = Depends(get_user_service),
):
    user, token = user_service.login(body.email, body.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.get("/me", response_model=UserResponse)
def me(
    identity: Identity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service),
):
    return UserResponse.model_validate(user_service.get_by_id(identity.subject_id))
