from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHashError
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.errors import Conflict, Forbidden, NotFound, Unauthenticated
from storefront.domain.order_status import Role
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.services.identity_service import IdentityService, Principal
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_hasher = PasswordHasher()


class UserService:
    def __init__(self, db: Session, identity: IdentityService | None = None):
        self.repo = UserRepo(db)
        self.identity = identity or IdentityService()

    def create_user(self, payload: UserCreate, role: Role = Role.USER) -> UserRead:
        if self.repo.get_by_email(payload.email):
            raise Conflict("Uzytkownik z tym emailem juz istnieje")

        user = UserModel(
            name=payload.name,
            email=payload.email,
            password_hash=_hasher.hash(payload.password),
            role=role.value,
        )
        created = self.repo.create_user(user)
        logger.info(f"Utworzono uzytkownika {created.id} ({created.role})")
        return UserRead.model_validate(created)

    def authenticate(self, email: str, password: str) -> str:
        user = self.repo.get_by_email(email.strip().lower())
        if not user:
            raise Unauthenticated("Niepoprawny email lub haslo")
        try:
            _hasher.verify(user.password_hash, password)
        except (VerifyMismatchError, InvalidHashError):
            raise Unauthenticated("Niepoprawny email lub haslo")
        return self.identity.issue_token(user.id, user.role)

    def get_user(self, principal: Principal, user_id: int) -> UserRead:
        if principal.user_id != user_id and not principal.is_admin:
            raise Forbidden("Brak dostepu do uzytkownika")
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return UserRead.model_validate(user)
