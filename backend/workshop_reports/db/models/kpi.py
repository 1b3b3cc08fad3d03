import datetime as dt
from sqlalchemy import ForeignKey, Date, Float, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from workshop_reports.db.base import Base
from workshop_reports.db.models._mixins import TimestampMixin

class KpiDaily(Base, TimestampMixin):
    """One row of operational figures per workshop and period date."""

    __tablename__ = "kpis"
    __table_args__ = (
        Index("uq_kpis_workshop_fecha", "workshop_id", "fecha", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    workshop_id: Mapped[int] = mapped_column(ForeignKey("workshop.id", ondelete="CASCADE"), index=True)
    fecha: Mapped[dt.date] = mapped_column(Date, index=True)

    # labour hours by trade
    mo_mecanica: Mapped[float | None] = mapped_column(Float, nullable=True)
    mo_chapa: Mapped[float | None] = mapped_column(Float, nullable=True)
    mo_pintura: Mapped[float | None] = mapped_column(Float, nullable=True)

    # repair orders by trade
    or_mecanica: Mapped[float | None] = mapped_column(Float, nullable=True)
    or_carroceria: Mapped[float | None] = mapped_column(Float, nullable=True)

    # materials
    material_pintura: Mapped[float | None] = mapped_column(Float, nullable=True)
    material_anexos: Mapped[float | None] = mapped_column(Float, nullable=True)
    materiales_mecanica: Mapped[float | None] = mapped_column(Float, nullable=True)

    total_materiales: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_mano_obra: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_facturas: Mapped[float | None] = mapped_column(Float, nullable=True)

    workshop = relationship("Workshop", back_populates="kpis")
