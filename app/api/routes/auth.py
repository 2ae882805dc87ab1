from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status

from app.dependencies.auth import get_current_member
from app.dependencies.services import get_auth_service
from app.schemas.auth import (
    AuthResponse,
    PublicCredentials,
    RegisterPublicRequest,
    RegisterUniversityRequest,
    UniversityCredentials,
    UniversityIdLookupRequest,
    parse_credentials,
    user_response,
)
from app.services.auth_service import AuthService
from app.utils.responses import envelope

router = APIRouter()


@router.post("/register/public", status_code=status.HTTP_201_CREATED)
def register_public(
    payload: RegisterPublicRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    user, token = auth_service.register_public(payload)
    return envelope(
        "Public user registered successfully",
        AuthResponse(user=user_response(user), token=token),
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/lookup/university-id")
def lookup_university_id(
    payload: UniversityIdLookupRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Pre-registration check against the university directory. Expired records come back without data."""
    result = auth_service.lookup_university_id(payload.university_id)
    return envelope(
        "University member found" if result.found else "University member not found",
        result,
        exclude_none=True,
    )


@router.post("/register/university", status_code=status.HTTP_201_CREATED)
def register_university(
    payload: RegisterUniversityRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    user, token = auth_service.register_university(payload)
    return envelope(
        "University member registered successfully",
        AuthResponse(user=user_response(user), token=token),
        status_code=status.HTTP_201_CREATED,
    )


def _login_response(auth_service: AuthService, credentials):
    user, token = auth_service.login(credentials)
    return envelope("Login successful", AuthResponse(user=user_response(user), token=token))


@router.post("/login/public")
def login_public(
    payload: PublicCredentials,
    auth_service: AuthService = Depends(get_auth_service),
):
    return _login_response(auth_service, payload)


@router.post("/login/university")
def login_university(
    payload: UniversityCredentials,
    auth_service: AuthService = Depends(get_auth_service),
):
    return _login_response(auth_service, payload)


@router.post("/login")
def login(
    payload: Optional[Dict[str, Any]] = Body(None),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Accepts either {email, password} or {universityId, pin}."""
    return _login_response(auth_service, parse_credentials(payload))


@router.get("/profile")
def get_profile(current_user=Depends(get_current_member)):
    return envelope("Profile retrieved successfully", user_response(current_user))


@router.post("/logout")
def logout(current_user=Depends(get_current_member)):
    # Tokens are stateless; the client discards its copy
    return envelope("Logout successful")
