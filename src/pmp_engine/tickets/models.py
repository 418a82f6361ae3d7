"""SQLAlchemy models for tickets and their contact details."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from pmp_engine.common.models import Base, CreatedAtMixin, TimestampMixin, generate_uuid


class TicketModel(Base, CreatedAtMixin):
    __tablename__ = "tickets"

    code: Mapped[str] = mapped_column(String(13), primary_key=True)


class TicketContactModel(Base, TimestampMixin):
    __tablename__ = "ticket_contacts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    ticket_code: Mapped[str] = mapped_column(
        String(13), ForeignKey("tickets.code"), unique=True, nullable=False
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    instagram: Mapped[str | None] = mapped_column(String(64), nullable=True)
