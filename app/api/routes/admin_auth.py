from fastapi import APIRouter, Depends, status

from app.dependencies.auth import get_current_admin, require_super_admin
from app.dependencies.services import get_admin_auth_service
from app.schemas.admin import (
    AdminAuthResponse,
    AdminLoginRequest,
    AdminPasswordChange,
    AdminResponse,
    CreateAdminRequest,
)
from app.services.admin_auth_service import AdminAuthService
from app.utils.responses import envelope

router = APIRouter()


@router.post("/login")
def login(
    payload: AdminLoginRequest,
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
):
    admin, token = admin_auth.login(payload.email, payload.password)
    return envelope("Login successful", AdminAuthResponse(admin=AdminResponse.model_validate(admin), token=token))


@router.get("/me")
def get_profile(current_admin=Depends(get_current_admin)):
    return envelope("Admin profile retrieved successfully", AdminResponse.model_validate(current_admin))


@router.put("/change-password")
def change_password(
    payload: AdminPasswordChange,
    current_admin=Depends(get_current_admin),
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
):
    admin_auth.change_password(current_admin, payload.current_password, payload.new_password)
    return envelope("Password changed successfully")


@router.post("/logout")
def logout(current_admin=Depends(get_current_admin)):
    return envelope("Logout successful")


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_admin(
    payload: CreateAdminRequest,
    current_admin=Depends(require_super_admin),
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
):
    admin = admin_auth.create_admin(payload)
    return envelope(
        "Admin created successfully",
        AdminResponse.model_validate(admin),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/all")
def list_admins(
    current_admin=Depends(require_super_admin),
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
):
    admins = admin_auth.list_admins()
    return envelope("Admins retrieved successfully", [AdminResponse.model_validate(a) for a in admins])
