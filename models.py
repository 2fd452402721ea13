from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


class User(Base):
    """
    A person that can own a facial template.

    Users are created lazily on their first enrollment and never deleted
    by the service.
    """

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("username", name="uq_users_username"),)

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(128), nullable=False, index=True)

    template = relationship("FacialTemplate", back_populates="user", uselist=False)

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, username={self.username!r})"


class FacialTemplate(Base):
    """
    The stored embedding of a user's face.

    `facial_embedding` holds exactly the bytes the active strategy
    returned. `image_url` is informational (the uploaded file name) and is
    never used for matching.
    """

    __tablename__ = "facial_templates"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_facial_templates_user_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    facial_embedding = Column(LargeBinary, nullable=False)
    image_url = Column(String(512), nullable=True)
    enrollment_date = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="template")

    def __repr__(self) -> str:
        return (
            f"FacialTemplate(id={self.id!r}, user_id={self.user_id!r}, "
            f"image_url={self.image_url!r})"
        )
