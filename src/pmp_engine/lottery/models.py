"""SQLAlchemy models for lotteries and their winners."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pmp_engine.common.models import Base, CreatedAtMixin, generate_uuid


class LotteryModel(Base, CreatedAtMixin):
    __tablename__ = "lotteries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    winners: Mapped[list["LotteryWinnerModel"]] = relationship(back_populates="lottery")


class LotteryWinnerModel(Base, CreatedAtMixin):
    __tablename__ = "lottery_winners"
    __table_args__ = (
        UniqueConstraint("lottery_id", "ticket_code", name="uq_winner_lottery_ticket"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    lottery_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("lotteries.id"), nullable=False, index=True
    )
    # Not foreign-keyed: winners reference codes, not ticket rows.
    ticket_code: Mapped[str] = mapped_column(String(13), nullable=False, index=True)
    # NULL until claimed; set exactly once.
    claimed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    lottery: Mapped["LotteryModel"] = relationship(back_populates="winners")
