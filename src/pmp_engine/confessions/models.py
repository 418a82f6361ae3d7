"""SQLAlchemy models for confessions and the one-vote-per-ticket ledger."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pmp_engine.common.models import Base, CreatedAtMixin, generate_uuid


class ConfessionModel(Base, CreatedAtMixin):
    __tablename__ = "confessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    text_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)


class VoteModel(Base, CreatedAtMixin):
    __tablename__ = "confession_votes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    # One vote per ticket, across all confessions.
    ticket_code: Mapped[str] = mapped_column(String(13), unique=True, nullable=False)
    confession_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("confessions.id"), nullable=False, index=True
    )
