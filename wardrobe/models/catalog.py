"""
Catalog records for clothing items and outfits.

Rows coming back from Supabase are validated into frozen models, so a
published list can be shared with the UI without defensive copies.
Patching a record means building a new one with model_copy(update=...).
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CATEGORIES = ("tops", "bottoms", "dresses", "outerwear", "shoes", "accessories")


def _normalize_category(v: str) -> str:
    category = (v or "").strip().lower()
    if category not in CATEGORIES:
        raise ValueError(
            f"category must be one of {', '.join(CATEGORIES)} (got {v!r})"
        )
    return category


class ClothingItem(BaseModel):
    """A single piece of clothing owned by one user."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    user_id: str
    name: str
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    color_primary: Optional[str] = None
    color_secondary: Optional[str] = None
    pattern: Optional[str] = None
    material: Optional[str] = None
    size: Optional[str] = None
    purchase_price: Optional[float] = Field(default=None, ge=0)
    purchase_date: Optional[date] = None
    notes: Optional[str] = None
    season: list[str] = Field(default_factory=list)
    occasions: list[str] = Field(default_factory=list)
    style_tags: list[str] = Field(default_factory=list)
    wear_count: int = Field(default=0, ge=0)
    last_worn: Optional[date] = None
    favorite: bool = False
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    ai_description: Optional[str] = None
    ai_attributes: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str) -> str:
        return _normalize_category(v)

    @field_validator("season", "occasions", "style_tags", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        """Array columns are nullable in the database."""
        return v or []

    @field_validator("wear_count", "favorite", mode="before")
    @classmethod
    def null_to_default(cls, v, info):
        if v is None:
            return 0 if info.field_name == "wear_count" else False
        return v

    @property
    def colors(self) -> list[str]:
        return [c for c in (self.color_primary, self.color_secondary) if c]


class OutfitMember(BaseModel):
    """The slice of a clothing item an outfit needs for display."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    category: str
    color_primary: Optional[str] = None
    brand: Optional[str] = None
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None


class Outfit(BaseModel):
    """A named combination of clothing items."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    user_id: str
    name: str
    occasion: Optional[str] = None
    season: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    times_worn: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None
    items: tuple[OutfitMember, ...] = ()
    # False when the member lookup failed; items is then not the stored set
    members_loaded: bool = Field(default=True, exclude=True)

    @field_validator("season", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        return v or []

    @field_validator("times_worn", mode="before")
    @classmethod
    def null_to_zero(cls, v):
        return 0 if v is None else v

    @property
    def item_ids(self) -> list[str]:
        return [member.id for member in self.items]


class OutfitItem(BaseModel):
    """Join record linking an outfit to one clothing item."""

    model_config = ConfigDict(frozen=True)

    outfit_id: str
    item_id: str


# =============================================================================
# DRAFTS (validated input for create / update)
# =============================================================================


def _blank_to_none(record: dict) -> dict:
    return {k: (None if v == "" else v) for k, v in record.items()}


class ItemDraft(BaseModel):
    """Editable fields of a clothing item."""

    name: str
    category: str
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    color_primary: Optional[str] = None
    color_secondary: Optional[str] = None
    pattern: Optional[str] = None
    material: Optional[str] = None
    size: Optional[str] = None
    purchase_price: Optional[float] = Field(default=None, ge=0)
    purchase_date: Optional[date] = None
    notes: Optional[str] = None
    season: list[str] = Field(default_factory=list)
    occasions: list[str] = Field(default_factory=list)
    style_tags: list[str] = Field(default_factory=list)
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str) -> str:
        return _normalize_category(v)

    def to_record(self) -> dict:
        """Row values for insert/update; blank optionals are stored as NULL."""
        return _blank_to_none(self.model_dump(mode="json"))


class OutfitDraft(BaseModel):
    """Editable fields of an outfit."""

    name: str
    occasion: Optional[str] = None
    season: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    def to_record(self) -> dict:
        return _blank_to_none(self.model_dump(mode="json"))
