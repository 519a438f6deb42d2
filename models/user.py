from sqlalchemy import Column, String, Text, DateTime, CheckConstraint, Index

from models.base_model import Base, BaseModel, utcnow

ROLES = ("admin", "faculty", "staff", "student", "researcher")
DEFAULT_ROLE = "student"


class User(BaseModel, Base):
    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default=DEFAULT_ROLE)
    department = Column(String(100), nullable=True)
    # At most one live refresh token per user; a new login overwrites it
    refresh_token = Column(Text, nullable=True)
    last_active = Column(DateTime, nullable=True, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ({})".format(", ".join(f"'{r}'" for r in ROLES)),
            name="ck_users_role_known",
        ),
        Index("ix_users_role", "role"),
        Index("ix_users_last_active", "last_active"),
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def touch(self):
        """Mark the user as active now (not committed)."""
        self.last_active = utcnow()

    def __repr__(self):
        return f"<User {self.email} role={self.role}>"
