from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workshop_reports.db.base import Base
from workshop_reports.db.models._mixins import TimestampMixin

class Workshop(Base, TimestampMixin):
    __tablename__ = "workshop"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(256))
    network_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    kpis = relationship("KpiDaily", back_populates="workshop")
    invoices = relationship("Invoice", back_populates="workshop")
