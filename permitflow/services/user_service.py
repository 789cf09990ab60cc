from __future__ import annotations

from sqlmodel import col

from permitflow.domain.errors import ConflictError
from permitflow.domain.models import User, UserCreate, UserRole
from permitflow.infra.store import EntityStore


class UserService:
    def create_user(self, payload: UserCreate) -> User:
        with EntityStore.open() as store:
            existing = store.find_many(User, User.email == payload.email, limit=1)
            if existing:
                raise ConflictError("email already registered")
            user = User(
                name=payload.name,
                email=payload.email,
                role=payload.role,
                is_active=payload.is_active,
            )
            store.create(user)
            store.commit()
            return user

    def get_user(self, user_id: str) -> User:
        with EntityStore.open() as store:
            return store.get(User, user_id, label="user")

    def list_users(self, role: UserRole | None = None, active_only: bool = False) -> list[User]:
        criteria = []
        if role is not None:
            criteria.append(User.role == role)
        if active_only:
            criteria.append(col(User.is_active).is_(True))
        with EntityStore.open() as store:
            return store.find_many(User, *criteria, order_by=col(User.created_at))

    def set_active(self, user_id: str, is_active: bool) -> User:
        with EntityStore.open() as store:
            user = store.get(User, user_id, for_update=True, label="user")
            user.is_active = is_active
            store.save(user)
            store.commit()
            return user
