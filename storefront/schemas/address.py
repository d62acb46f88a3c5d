"""
Address schemas for request/response validation
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal
from datetime import datetime
import uuid

AddressType = Literal["shipping", "billing", "both"]

TEXT_FIELDS = (
    "full_name", "address_line1", "address_line2", "city",
    "state", "postal_code", "country", "phone",
)

class AddressFields(BaseModel):
    """Trims surrounding whitespace from text fields"""

    @field_validator(*TEXT_FIELDS, mode="before", check_fields=False)
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

class AddressBase(AddressFields):
    full_name: str = Field(..., min_length=1, max_length=255)
    address_line1: str = Field(..., min_length=1, max_length=500)
    address_line2: Optional[str] = Field(None, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=20)
    type: AddressType = "both"

class AddressCreate(AddressBase):
    """Schema for creating an address"""
    is_default: bool = False

class AddressUpdate(AddressFields):
    """Schema for updating an address; the owner cannot be changed"""
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    address_line1: Optional[str] = Field(None, min_length=1, max_length=500)
    address_line2: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    postal_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    type: Optional[AddressType] = None
    is_default: Optional[bool] = None

    def changes(self) -> dict:
        """Fields the client sent; null only clears the optional second line"""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if value is not None or field == "address_line2"
        }

class AddressResponse(AddressBase):
    """Schema for address response"""
    id: uuid.UUID
    user_id: uuid.UUID
    is_default: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
