# storefront/repos/user_repo.py
from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def exists(self, user_id: int) -> bool:
        # bez ladowania obiektu do sesji, wystarczy przy walidacji zamowienia i koszyka
        return self.db.execute(select(exists().where(UserModel.id == user_id))).scalar()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
