"""Raw license rows exactly as exported by the registry"""

from sqlalchemy import Column, Index, Integer, Text

from asc_registry.database import Base


class RawLicense(Base):
    """One registry export row; every field is free text and nothing is unique"""

    __tablename__ = "asc_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    licensing_state = Column(Text, nullable=True)
    state_license_number = Column(Text, nullable=True)
    first_name = Column(Text, nullable=True)
    middle_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    name_suffix = Column(Text, nullable=True)
    effective_date_of_license = Column(Text, nullable=True)
    expiration_date_of_license = Column(Text, nullable=True)
    license_certificate_type = Column(Text, nullable=True)
    status = Column(Text, nullable=True)
    company_name = Column(Text, nullable=True)
    telephone_number = Column(Text, nullable=True)
    street_address = Column(Text, nullable=True)
    city = Column(Text, nullable=True)
    state = Column(Text, nullable=True)
    county = Column(Text, nullable=True)
    zip_code = Column(Text, nullable=True)
    conforms_to_aqb_criteria = Column(Text, nullable=True)
    disciplinary_action = Column(Text, nullable=True)
    disciplinary_action_effective_date = Column(Text, nullable=True)
    disciplinary_action_ending_date = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_asc_data_licensing_state", "licensing_state"),
        Index("idx_asc_data_name", "last_name", "first_name"),
    )
