from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, UniqueConstraint
from datetime import datetime
from .db import Base
from sqlalchemy.orm import relationship
import uuid


def new_id() -> str:
    return str(uuid.uuid4())


class Provider(Base):
    __tablename__ = "provider"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    document = Column(String(14), nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "document": self.document}


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=new_id)
    user_name = Column(String(256), unique=True, index=True, nullable=False)
    email = Column(String(256), unique=True, index=True, nullable=False)
    email_confirmed = Column(Boolean, default=False, nullable=False)
    password = Column(String, nullable=False)
    # Lockout
    lockout_enabled = Column(Boolean, default=True, nullable=False)
    access_failed_count = Column(Integer, default=0, nullable=False)
    lockout_end = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    claims = relationship("UserClaim", back_populates="user", cascade="all, delete-orphan")
    roles = relationship("Role", secondary="user_roles", back_populates="users")

    def is_locked_out(self, now: datetime = None) -> bool:
        if not self.lockout_enabled or self.lockout_end is None:
            return False
        return self.lockout_end > (now or datetime.utcnow())


class UserClaim(Base):
    __tablename__ = "user_claims"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    claim_type = Column(String(256), nullable=False)
    claim_value = Column(String(256), nullable=False, default="")

    user = relationship("User", back_populates="claims")


class Role(Base):
    __tablename__ = "roles"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(256), unique=True, nullable=False)

    users = relationship("User", secondary="user_roles", back_populates="roles")


class UserRole(Base):
    __tablename__ = "user_roles"
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    role_id = Column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )
