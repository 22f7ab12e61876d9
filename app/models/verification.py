"""ORM model for email verification tokens (signup and email change)."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from app.models.base import Base

KIND_SIGNUP = "SIGNUP"
KIND_EMAIL_CHANGE = "EMAIL_CHANGE"


class EmailVerification(Base):
    """
    Single-use token sent by email.

    kind: 'SIGNUP' verifies the current address; 'EMAIL_CHANGE' moves the
    account to new_email once the token is presented.
    """

    __tablename__ = "email_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(128), nullable=False, unique=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind = Column(String(32), nullable=False)
    new_email = Column(String(255), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
