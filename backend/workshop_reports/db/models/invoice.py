import datetime as dt
from sqlalchemy import ForeignKey, DateTime, Float, String, Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workshop_reports.db.base import Base
from workshop_reports.db.models._mixins import TimestampMixin

class Invoice(Base, TimestampMixin):
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    workshop_id: Mapped[int] = mapped_column(ForeignKey("workshop.id", ondelete="CASCADE"), index=True)
    client_id: Mapped[str] = mapped_column(String(64), index=True)
    client_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    concept: Mapped[str] = mapped_column(Text, default="")
    amount: Mapped[float] = mapped_column(Float, default=0.0)
    issue_date: Mapped[dt.datetime] = mapped_column(DateTime, index=True)
    collected: Mapped[bool] = mapped_column(Boolean, default=False)
    # bumped by every store update, carried on broadcast events
    version: Mapped[int] = mapped_column(Integer, default=1)

    workshop = relationship("Workshop", back_populates="invoices")
