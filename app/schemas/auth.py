from datetime import date, datetime
from typing import Any, Optional, Union

from pydantic import Field, ValidationError

from app.core.exceptions import InvalidCredentialsError
from app.models.user import PublicUser
from app.schemas.common import CamelModel


class RegisterPublicRequest(CamelModel):
    first_name: str = Field(min_length=2, max_length=100)
    last_name: str = Field(min_length=2, max_length=100)
    # Format checks (email, Ghana phone, password length) live in AuthService
    email: str
    phone: str
    password: str


class UniversityIdLookupRequest(CamelModel):
    university_id: str


class RegisterUniversityRequest(CamelModel):
    university_id: str
    pin: str


class PublicCredentials(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UniversityCredentials(CamelModel):
    university_id: str = Field(min_length=1)
    pin: str = Field(min_length=1)


Credentials = Union[PublicCredentials, UniversityCredentials]


def parse_credentials(body: Any) -> Credentials:
    """
    Pick the login variant for the generic /auth/login endpoint.
    email+password wins when both shapes are present.
    """
    if isinstance(body, dict):
        try:
            if body.get("email") and body.get("password"):
                return PublicCredentials.model_validate(body)
            if (body.get("universityId") or body.get("university_id")) and body.get("pin"):
                return UniversityCredentials.model_validate(body)
        except ValidationError:
            pass
    raise InvalidCredentialsError("Invalid login credentials provided")


class PublicUserResponse(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    user_type: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UniversityUserResponse(CamelModel):
    id: str
    university_id: str
    first_name: str
    last_name: str
    email: str
    hall_of_residence: Optional[str] = None
    user_type: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


UserResponse = Union[PublicUserResponse, UniversityUserResponse]


class AuthResponse(CamelModel):
    user: UserResponse
    token: str


class UniversityMemberData(CamelModel):
    first_name: str
    last_name: str
    email: str
    hall_of_residence: Optional[str] = None
    user_type: str
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    academic_year: Optional[str] = None
    program: Optional[str] = None
    level: Optional[str] = None
    faculty: Optional[str] = None
    department: Optional[str] = None
    status: str


class IdLookupResponse(CamelModel):
    found: bool
    is_expired: Optional[bool] = None
    message: Optional[str] = None
    data: Optional[UniversityMemberData] = None


def user_response(user) -> UserResponse:
    """Public view of either user model; password/PIN hashes are never included."""
    if isinstance(user, PublicUser):
        return PublicUserResponse.model_validate(user)
    return UniversityUserResponse.model_validate(user)
