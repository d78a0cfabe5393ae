"""
User record. Created by the external session layer, or auto-provisioned the
first time an e-mail is referenced (see `user_service.find_or_create_user_by_email`).
"""

from sqlalchemy import Column, Integer, String

from courtshare.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    image = Column(String(1024), nullable=True)

    @property
    def first_name(self) -> str | None:
        if not self.name or not self.name.strip():
            return None
        return self.name.split()[0]

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
