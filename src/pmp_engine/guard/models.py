"""SQLAlchemy models for the append-only abuse guard logs."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from pmp_engine.common.models import Base, CreatedAtMixin, generate_uuid


class SubmissionGuardModel(Base, CreatedAtMixin):
    __tablename__ = "submission_guard"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    fp_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    text_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)


class UnlockAttemptModel(Base, CreatedAtMixin):
    __tablename__ = "unlock_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
