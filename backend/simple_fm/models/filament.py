"""
Filament model

One physical spool on the shelf. The gross and tare weights are entered by
hand; remaining_g is stored so consumption can be tracked independently of
the weights recorded at creation.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from simple_fm.db.base import Base
from simple_fm.models.timestamps import utcnow
from simple_fm.services.calculations import compute_capacity, compute_percent_remaining


class Filament(Base):
    """Physical spool instance referencing exactly one Profile"""
    __tablename__ = "filaments"
    __table_args__ = (
        CheckConstraint("weight_g >= 0", name="ck_filaments_weight_non_negative"),
        CheckConstraint("remaining_g >= 0", name="ck_filaments_remaining_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(100), nullable=False)  # "Rolle #1", "Testspule"
    profile_id = Column(
        Integer,
        ForeignKey("profiles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Visual
    color_hex = Column(String(7), nullable=True)  # #ff6600

    # Costing
    price_eur = Column(Float, nullable=True)

    # Weights (grams)
    weight_g = Column(Integer, nullable=False)  # spool + material
    spool_weight_g = Column(Integer, nullable=False, default=200)  # empty spool
    remaining_g = Column(Integer, nullable=False, default=0)

    # Print settings
    print_temp_min = Column(Integer, nullable=True)  # °C
    print_temp_max = Column(Integer, nullable=True)  # °C

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    profile = relationship("Profile", back_populates="filaments")

    def __repr__(self):
        return f"<Filament {self.id}: {self.name}>"

    @property
    def capacity_g(self) -> int:
        """Material mass when the spool was weighed in"""
        return compute_capacity(self.weight_g or 0, self.spool_weight_g or 0)

    @property
    def percent_remaining(self) -> int:
        return compute_percent_remaining(self.remaining_g or 0, self.weight_g or 0, self.spool_weight_g or 0)

    @property
    def temp_range(self) -> str:
        """Nozzle temperature range for display, e.g. "230-250 °C" """
        if self.print_temp_min is not None and self.print_temp_max is not None:
            return f"{self.print_temp_min}-{self.print_temp_max} °C"
        if self.print_temp_min is not None:
            return f"≥ {self.print_temp_min} °C"
        if self.print_temp_max is not None:
            return f"≤ {self.print_temp_max} °C"
        return ""
