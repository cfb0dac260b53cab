# storefront/services/user_service.py
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """Klienci sklepu - tylko tyle, ile potrzeba do koszyka i zamowien."""

    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        # idempotentne - ponowna rejestracja tego samego id zwraca istniejacego klienta
        existing = self.repo.get_user(payload.id)
        if existing:
            logger.info(f"User {payload.id} already registered")
            return UserRead.model_validate(existing)

        created = self.repo.create_user(UserModel(id=payload.id, name=payload.name))
        logger.info(f"User {created.id} registered")
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise ValueError("Uzytkownik nie istnieje")
        return UserRead.model_validate(user)
