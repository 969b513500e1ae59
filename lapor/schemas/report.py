from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from lapor.models.profile import ProfileRole
from lapor.models.report import Report, ReportStatus
from lapor.models.report_update import ReportUpdate


def _check_length(value: str, low: int, high: int, label: str) -> str:
    if len(value) < low:
        raise ValueError(f"{label} minimal {low} karakter")
    if len(value) > high:
        raise ValueError(f"{label} maksimal {high} karakter")
    return value


def _enum_value(value) -> Optional[str]:
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


def _role_or_none(value) -> Optional[ProfileRole]:
    try:
        return ProfileRole(_enum_value(value)) if value is not None else None
    except ValueError:
        return None


# -------- Input --------
class ReportCreate(BaseModel):
    title: str
    description: str
    category_id: str
    location_text: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _check_length(v, 5, 200, "Judul")

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        return _check_length(v, 10, 2000, "Deskripsi")

    @field_validator("category_id")
    @classmethod
    def check_category(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Kategori harus dipilih")
        return v.strip()

    @field_validator("location_text")
    @classmethod
    def check_location(cls, v: str) -> str:
        return _check_length(v, 5, 500, "Lokasi")

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def parse_coordinate(cls, v, info):
        if v is None or isinstance(v, (int, float)):
            return v
        label = info.field_name.capitalize()
        try:
            return float(v)
        except (TypeError, ValueError):
            raise ValueError(f"{label} harus berupa angka")

    @model_validator(mode="after")
    def check_coordinates(self) -> "ReportCreate":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("Latitude dan longitude harus diisi bersamaan")
        if self.latitude is not None and not (-90.0 <= self.latitude <= 90.0):
            raise ValueError("Latitude harus di antara -90 dan 90")
        if self.longitude is not None and not (-180.0 <= self.longitude <= 180.0):
            raise ValueError("Longitude harus di antara -180 dan 180")
        return self


class ReportUpdateCreate(BaseModel):
    status: str
    note: str

    @field_validator("note")
    @classmethod
    def check_note(cls, v: str) -> str:
        return _check_length(v, 10, 1000, "Catatan")


# -------- Output --------
class ReportOut(BaseModel):
    """
    Flattened view of a report row and its joins (category, owner, assignee).

    Built through `from_report` so that business logic never sees missing or
    oddly-shaped join data: absent relations become None, unknown roles become None.
    """

    id: str
    user_id: str
    category_id: Optional[str] = None
    title: str
    description: str
    location_text: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None
    status: ReportStatus
    assigned_to: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    category_name: Optional[str] = None
    owner_name: Optional[str] = None
    assignee_name: Optional[str] = None
    assignee_role: Optional[ProfileRole] = None

    @classmethod
    def from_report(cls, r: Report) -> "ReportOut":
        category = getattr(r, "category", None)
        owner = getattr(r, "owner", None)
        assignee = getattr(r, "assignee", None) if r.assigned_to else None
        return cls(
            id=r.id,
            user_id=r.user_id,
            category_id=r.category_id,
            title=r.title,
            description=r.description,
            location_text=r.location_text,
            latitude=r.latitude,
            longitude=r.longitude,
            image_url=r.image_url,
            status=ReportStatus(_enum_value(r.status)),
            assigned_to=r.assigned_to,
            created_at=r.created_at,
            updated_at=r.updated_at,
            category_name=getattr(category, "name", None),
            owner_name=getattr(owner, "name", None),
            assignee_name=getattr(assignee, "name", None),
            assignee_role=_role_or_none(getattr(assignee, "role", None)),
        )


class ReportUpdateOut(BaseModel):
    id: str
    report_id: str
    petugas_id: str
    note: str
    status_update: ReportStatus
    image_url: Optional[str] = None
    created_at: datetime
    author_name: Optional[str] = None

    @classmethod
    def from_update(cls, u: ReportUpdate) -> "ReportUpdateOut":
        return cls(
            id=u.id,
            report_id=u.report_id,
            petugas_id=u.petugas_id,
            note=u.note,
            status_update=ReportStatus(_enum_value(u.status_update)),
            image_url=u.image_url,
            created_at=u.created_at,
            author_name=getattr(getattr(u, "author", None), "name", None),
        )


class DashboardStats(BaseModel):
    total: int = 0
    open: int = 0
    on_progress: int = 0
    resolved: int = 0
    rejected: int = 0


class PetugasStats(BaseModel):
    total: int = 0
    in_progress: int = 0
    completed: int = 0


class UserDashboardOut(BaseModel):
    stats: DashboardStats
    reports: list[ReportOut]


class PetugasDashboardOut(BaseModel):
    stats: PetugasStats
    available: list[ReportOut]
    mine: list[ReportOut]
    rejected: list[ReportOut]


class ReportDetailOut(BaseModel):
    report: ReportOut
    updates: list[ReportUpdateOut]
    can_update: bool


class AdminStatsOut(BaseModel):
    reports: DashboardStats
    total_users: int
