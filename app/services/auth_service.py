"""
Registration, login and token verification for public and university users.

University users are verified against the read-only university directory
(university_members); their identity is copied at registration and never re-synced.
"""
import logging
from typing import Optional, Tuple, Union

from sqlalchemy.orm import Session

from app.core.config import JWTConfig, settings
from app.core.exceptions import (
    AlreadyExistsError,
    ExpiredError,
    InvalidCredentialsError,
    InvalidFormatError,
    NotFoundError,
)
from app.core.plans import ADMIN_USER_TYPE
from app.models.admin_user import AdminUser
from app.models.university_member import UniversityMember
from app.models.user import PublicUser, UniversityUser
from app.schemas.auth import (
    Credentials,
    IdLookupResponse,
    PublicCredentials,
    RegisterPublicRequest,
    RegisterUniversityRequest,
    UniversityCredentials,
    UniversityMemberData,
)
from app.utils.auth import (
    create_access_token,
    decode_access_token,
    hash_password,
    is_valid_email,
    is_valid_ghana_phone,
    is_valid_university_id,
    sanitize_string,
    verify_password,
)

logger = logging.getLogger(__name__)

User = Union[PublicUser, UniversityUser]
Principal = Union[PublicUser, UniversityUser, AdminUser]

EXPIRED_MEMBER_MESSAGE = (
    "Student ID has expired or status is inactive. Please contact the university registrar."
)

# userType claim -> table; student and staff tokens fall through to UniversityUser
_TOKEN_MODELS = {"public": PublicUser, ADMIN_USER_TYPE: AdminUser}


class AuthService:
    def __init__(self, db: Session, jwt_config: Optional[JWTConfig] = None):
        self.db = db
        self.jwt_config = jwt_config or settings.jwt

    def issue_token(self, user: User) -> str:
        return create_access_token(
            {
                "sub": user.id,
                "userId": user.id,
                "userType": user.user_type,
                "email": user.email,
            },
            config=self.jwt_config,
        )

    def _find_directory_member(self, university_id: str) -> Optional[UniversityMember]:
        return self.db.query(UniversityMember).filter(
            UniversityMember.id == university_id,
            UniversityMember.is_active.is_(True),
        ).first()

    def register_public(self, data: RegisterPublicRequest) -> Tuple[PublicUser, str]:
        email = data.email.strip().lower()

        existing = self.db.query(PublicUser).filter(PublicUser.email == email).first()
        if existing:
            raise AlreadyExistsError("User already exists with this email")

        if not is_valid_email(email):
            raise InvalidFormatError("Invalid email format")
        if not is_valid_ghana_phone(data.phone):
            raise InvalidFormatError("Invalid phone number format")
        if len(data.password) < 8:
            raise InvalidFormatError("Password must be at least 8 characters long")

        user = PublicUser(
            first_name=sanitize_string(data.first_name),
            last_name=sanitize_string(data.last_name),
            email=email,
            phone=data.phone.replace(" ", ""),
            password_hash=hash_password(data.password),
            user_type="public",
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info("Registered public user %s", user.id)
        return user, self.issue_token(user)

    def lookup_university_id(self, university_id: str) -> IdLookupResponse:
        if not is_valid_university_id(university_id):
            raise InvalidFormatError("Invalid university ID format")

        member = self._find_directory_member(university_id)
        if not member:
            return IdLookupResponse(found=False, message="University ID not found")

        if member.is_expired():
            # Directory details are withheld once a student record has lapsed
            return IdLookupResponse(found=True, is_expired=True, message=EXPIRED_MEMBER_MESSAGE)

        return IdLookupResponse(
            found=True,
            is_expired=False,
            data=UniversityMemberData(
                first_name=member.first_name,
                last_name=member.last_name,
                email=member.email,
                hall_of_residence=member.hall_of_residence,
                user_type=member.member_type,
                issue_date=member.issue_date,
                expiry_date=member.expiry_date,
                academic_year=member.academic_year,
                program=member.program,
                level=member.level,
                faculty=member.faculty,
                department=member.department,
                status=member.status,
            ),
        )

    def register_university(self, data: RegisterUniversityRequest) -> Tuple[UniversityUser, str]:
        if not is_valid_university_id(data.university_id):
            raise InvalidFormatError("Invalid university ID format")
        if len(data.pin) < 4:
            raise InvalidFormatError("PIN must be at least 4 characters long")

        existing = self.db.query(UniversityUser).filter(
            UniversityUser.university_id == data.university_id
        ).first()
        if existing:
            raise AlreadyExistsError("User already registered with this university ID")

        member = self._find_directory_member(data.university_id)
        if not member:
            raise NotFoundError("University ID not found in university database")
        if member.is_expired():
            raise ExpiredError(
                "Cannot register with expired or inactive student ID. "
                "Please contact the university registrar."
            )

        user = UniversityUser(
            university_id=data.university_id,
            first_name=member.first_name,
            last_name=member.last_name,
            email=member.email,
            hall_of_residence=member.hall_of_residence,
            user_type=member.member_type,
            pin_hash=hash_password(data.pin),
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info("Registered %s user %s (university ID %s)", user.user_type, user.id, user.university_id)
        return user, self.issue_token(user)

    def login(self, credentials: Credentials) -> Tuple[User, str]:
        if isinstance(credentials, PublicCredentials):
            user = self._login_public(credentials)
        elif isinstance(credentials, UniversityCredentials):
            user = self._login_university(credentials)
        else:
            raise InvalidCredentialsError("Invalid login credentials provided")
        return user, self.issue_token(user)

    def _login_public(self, credentials: PublicCredentials) -> PublicUser:
        user = self.db.query(PublicUser).filter(
            PublicUser.email == credentials.email.strip().lower(),
            PublicUser.is_active.is_(True),
        ).first()
        if not user or not verify_password(credentials.password, user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")
        return user

    def _login_university(self, credentials: UniversityCredentials) -> UniversityUser:
        if not is_valid_university_id(credentials.university_id):
            raise InvalidCredentialsError("Invalid university ID or PIN")
        user = self.db.query(UniversityUser).filter(
            UniversityUser.university_id == credentials.university_id,
            UniversityUser.is_active.is_(True),
        ).first()
        if not user or not verify_password(credentials.pin, user.pin_hash):
            raise InvalidCredentialsError("Invalid university ID or PIN")
        return user

    def verify_token(self, token: str) -> Principal:
        payload = decode_access_token(token, config=self.jwt_config)
        user_id = payload.get("userId") or payload.get("sub")
        model = _TOKEN_MODELS.get(payload.get("userType"), UniversityUser)

        user = self.db.query(model).filter(model.id == user_id, model.is_active.is_(True)).first()
        if not user:
            raise NotFoundError("User not found")
        return user
