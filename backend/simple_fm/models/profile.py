"""
Profile model

A filament type definition (vendor + material + physical properties) shared
by every physical spool of that type.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, CheckConstraint
from sqlalchemy.orm import relationship

from simple_fm.db.base import Base
from simple_fm.models.timestamps import utcnow


class Profile(Base):
    """
    Filament profile, e.g. "3D Jake PETG"

    Spools reference a profile for vendor/material; colour and weights are
    recorded per spool.
    """
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("density > 0", name="ck_profiles_density_positive"),
        CheckConstraint("diameter > 0", name="ck_profiles_diameter_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Identification
    vendor = Column(String(100), nullable=False, index=True)  # "3D Jake", "Prusament"
    material = Column(String(50), nullable=False)  # PLA, PETG, ASA

    # Physical properties
    density = Column(Float, nullable=False, default=1.24)  # g/cm³
    diameter = Column(Float, nullable=False, default=1.75)  # mm

    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    filaments = relationship("Filament", back_populates="profile", passive_deletes="all")

    def __repr__(self):
        return f"<Profile {self.id}: {self.vendor} {self.material}>"

    @property
    def display_name(self) -> str:
        """Friendly name for dropdowns"""
        return f"{self.vendor} {self.material} ({self.diameter:g} mm)"
