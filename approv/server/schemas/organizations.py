"""
Organization API Schemas.
"""

from typing import Optional

from pydantic import Field, HttpUrl

from .common import ApiModel


class OrganizationView(ApiModel):
    id: str
    name: str
    slug: str
    plan: str
    logo: Optional[str] = None
    primary_color: Optional[str] = None
    email_footer_text: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    default_expiry_days: int


class OrganizationUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    logo: Optional[HttpUrl] = None
    primary_color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$", examples=["#1F4E79"])
    email_footer_text: Optional[str] = Field(default=None, max_length=500)
    website: Optional[HttpUrl] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    default_expiry_days: Optional[int] = Field(default=None, ge=1, le=90)
