"""Pydantic models for console request bodies."""

import datetime
from typing import Literal

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials typed on the login screen."""

    email: str
    password: str


class PasswordChangeRequest(BaseModel):
    """Password change form for admins and leaders."""

    new_password: str
    current_password: str | None = None


class LinkPayload(BaseModel):
    """Useful link attached to a trip or tour."""

    title: str = ""
    url: str


class PriceTierPayload(BaseModel):
    """Named price tier of a tour."""

    label: str
    value: float | None = None


class TripPayload(BaseModel):
    """New trip form."""

    name: str
    destination: str
    start_date: datetime.date
    end_date: datetime.date
    description: str = ""
    image_url: str | None = None
    links: list[LinkPayload] = Field(default_factory=list)


class TourPayload(BaseModel):
    """Tour form; trip_id defaults to the trip being viewed."""

    trip_id: str | None = None
    name: str
    date: datetime.date | None = None
    time: str = ""
    description: str = ""
    price: float = 0.0
    prices: dict[str, PriceTierPayload] | None = None
    image_url: str | None = None
    links: list[LinkPayload] | None = None
    tags: list[str] | None = None


class GroupPayload(BaseModel):
    """Group form; trip_id defaults to the trip being viewed."""

    trip_id: str | None = None
    name: str
    members: list[str] = Field(default_factory=list)
    members_count: int | None = None
    leader_name: str
    leader_email: str | None = None
    leader_phone: str | None = None
    leader_password: str | None = None


class AttendanceSubmission(BaseModel):
    """A leader's confirmation or cancellation for one tour."""

    members: list[str] = Field(default_factory=list)
    custom_date: datetime.date | None = None
    cancel_reason: str | None = None
    selected_price_key: str | None = None


class DescriptionRequest(BaseModel):
    """Ask for generated marketing copy."""

    kind: Literal["trip", "tour"]
    name: str
    destination: str | None = None
    context: str | None = None


class PasswordResetRequest(BaseModel):
    """Ask for a password reset code."""

    email: str


class PasswordResetConfirmation(BaseModel):
    """Reset code from the e-mail plus the new password."""

    code: str
    new_password: str


class CustomTourPayload(BaseModel):
    """A leader's own activity."""

    name: str
    date: datetime.date
    time: str = ""
    price: float | None = None
    description: str | None = None
    image_url: str | None = None
    address: str | None = None
    location: str | None = None


class CustomTourUpdate(BaseModel):
    """Fields of a leader's own activity to change."""

    name: str | None = None
    date: datetime.date | None = None
    time: str | None = None
    price: float | None = None
    description: str | None = None
    image_url: str | None = None
    address: str | None = None
    location: str | None = None
