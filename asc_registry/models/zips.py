"""ZIP-level geography and population rows"""

from sqlalchemy import JSON, Boolean, Column, Float, Index, Integer, String, Text

from asc_registry.database import Base


class ZipGeo(Base):
    """One ZIP code; ``zcta`` marks the canonical reporting rows used for population"""

    __tablename__ = "uszips"

    zip = Column(String(5), primary_key=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    city = Column(Text, nullable=True)
    state_id = Column(String(2), nullable=True)
    state_name = Column(Text, nullable=True)
    zcta = Column(Boolean, nullable=True)
    parent_zcta = Column(String(5), nullable=True)
    population = Column(Integer, nullable=True)
    density = Column(Float, nullable=True)
    county_fips = Column(String(5), nullable=True)
    county_name = Column(Text, nullable=True)
    county_weights = Column(JSON, nullable=True)  # FIPS -> weight
    county_names_all = Column(JSON, nullable=True)
    county_fips_all = Column(JSON, nullable=True)
    imprecise = Column(Boolean, nullable=True)
    military = Column(Boolean, nullable=True)
    timezone = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_uszips_state", "state_id"),
        Index("idx_uszips_state_city", "state_id", "city"),
    )
