from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MenuItem(BaseModel):
    name: str
    price: float = Field(..., ge=0.0, allow_inf_nan=False)


class Menu(BaseModel):
    items: list[MenuItem] = Field(default_factory=list)


class CatererRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    location: str
    cuisines: list[str] = Field(default_factory=list)
    menu: Menu = Field(default_factory=Menu)
    rating: float | None = None
