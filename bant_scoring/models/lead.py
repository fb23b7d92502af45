from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from bant_scoring.models.base import Base


class Lead(Base):
    """Property-owner lead captured by the enclosing application.

    The scoring engine maps this table read-only: it selects contact,
    property and project attributes and never issues writes against it.
    """

    __tablename__ = "leads"
    id = Column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    email = Column(Text, nullable=False)
    phone = Column(Text)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)

    property_type = Column(Text)
    address = Column(Text)
    city = Column(Text)
    postal_code = Column(Text)
    surface = Column(Integer)
    rooms = Column(Integer)
    bedrooms = Column(Integer)
    bathrooms = Column(Integer)
    has_garden = Column(Boolean, server_default="false")
    has_parking = Column(Boolean, server_default="false")
    has_balcony = Column(Boolean, server_default="false")
    construction_year = Column(Integer)
    sale_timeline = Column(Text)
    wants_expert_contact = Column(Boolean, server_default="false")
    estimated_value = Column(Numeric(12, 2))

    project_type = Column(Text)
    timeline = Column(Text)
    ownership_status = Column(Text)

    lead_type = Column(String(50), nullable=False, server_default="estimation_quick")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
