"""SQLAlchemy model for the tenant user directory."""

from sqlalchemy import Column, Index, Integer, String, UniqueConstraint

from notification_center.infrastructure.database import Base


class DirectoryUserModel(Base):
    """Directory entry scoped to a client and condominium."""

    __tablename__ = "directory_user"
    __table_args__ = (
        UniqueConstraint("client_id", "condominium_id", "uid", name="uq_directory_user_uid"),
        Index("ix_directory_user_scope_role", "client_id", "condominium_id", "role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(128), nullable=False)
    client_id = Column(String(128), nullable=False)
    condominium_id = Column(String(128), nullable=False)
    role = Column(String(50), nullable=False)
    name = Column(String(120), nullable=True)
    email = Column(String(120), nullable=True)


__all__ = ["DirectoryUserModel"]
