"""Read-only view of a lead as seen by the scoring engine."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class LeadSnapshot(BaseModel):
    """Immutable copy of the lead attributes the BANT rubric reads.

    Built from the ``leads`` ORM row at the start of a scoring pass; the
    engine never writes back to the lead.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID

    # Contact
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    # Property
    property_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    surface: Optional[int] = None
    rooms: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    has_garden: Optional[bool] = None
    has_parking: Optional[bool] = None
    has_balcony: Optional[bool] = None
    construction_year: Optional[int] = None

    # Project
    ownership_status: Optional[str] = None
    project_type: Optional[str] = None
    timeline: Optional[str] = None
    sale_timeline: Optional[str] = None
    wants_expert_contact: Optional[bool] = None
    estimated_value: Optional[Decimal] = None

    lead_type: Optional[str] = None
    created_at: Optional[datetime] = None
