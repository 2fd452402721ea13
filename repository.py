"""Persistence of users and their facial templates."""

from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from errors import StorageUnavailableError
from models import FacialTemplate, User


class TemplateStore:
    """
    Users and templates backed by one SQLAlchemy session.

    A store is built per request; concurrency is left to the database.
    Any SQLAlchemy failure is rolled back and raised as
    StorageUnavailableError.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageUnavailableError(f"Storage failure while {action}: {e}") from e

    def find_user_by_username(self, username: str) -> Optional[User]:
        with self._storage("looking up user"):
            return self.db.query(User).filter(User.username == username).first()

    def create_user(self, username: str) -> User:
        """
        Insert a new user. If a concurrent request inserted the same
        username first, the existing row is returned instead.
        """
        with self._storage("creating user"):
            user = User(username=username)
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                existing = self.find_user_by_username(username)
                if existing is None:
                    raise
                return existing
            self.db.refresh(user)
            return user

    def find_template_by_user(self, user: User) -> Optional[FacialTemplate]:
        with self._storage("looking up template"):
            return (
                self.db.query(FacialTemplate)
                .filter(FacialTemplate.user_id == user.id)
                .first()
            )

    def list_templates(self) -> List[FacialTemplate]:
        """All templates with their users loaded, in insertion order."""
        with self._storage("listing templates"):
            return (
                self.db.query(FacialTemplate)
                .options(joinedload(FacialTemplate.user))
                .order_by(FacialTemplate.id.asc())
                .all()
            )

    def upsert_template(
        self,
        user: User,
        embedding: bytes,
        source_name: Optional[str],
        timestamp: datetime,
    ) -> Tuple[FacialTemplate, bool]:
        """
        Overwrite the user's template in place (keeping its id) or create
        it. Returns the template and whether it was created.
        """
        with self._storage("saving template"):
            template = self.find_template_by_user(user)
            created = template is None
            if created:
                template = FacialTemplate(user=user)
                self.db.add(template)
            template.facial_embedding = embedding
            template.image_url = source_name
            template.enrollment_date = timestamp
            self.db.commit()
            self.db.refresh(template)
            return template, created
