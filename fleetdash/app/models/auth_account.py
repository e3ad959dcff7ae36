"""
Auth account database model.

Credentials live apart from the user profile: an account can exist before
its profile row does, and login creates the profile when it is missing.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from fleetdash.app.db.session import Base, utcnow


class AuthAccount(Base):
    """
    Authentication account (email/password).

    `meta_name` and `meta_role` carry the signup metadata used to build
    the profile when it has to be created at login.
    """
    __tablename__ = "auth_accounts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Signup metadata
    meta_name = Column(String(255), nullable=True)
    meta_role = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<AuthAccount(id={self.id}, email='{self.email}')>"
