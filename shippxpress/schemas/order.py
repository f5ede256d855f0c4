from datetime import date

from pydantic import BaseModel, Field


class Dimensions(BaseModel):
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PackageIn(BaseModel):
    description: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    weight_kg: float | None = Field(default=None, gt=0)
    dimensions: Dimensions | None = None


class AddressIn(BaseModel):
    line1: str = Field(min_length=1)
    line2: str = ""
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip: str = Field(min_length=1)
    country: str = Field(default="US", min_length=2, max_length=2)


class OrderDraft(BaseModel):
    """The single validated shape every order-creation path goes through."""

    customer_name: str = Field(min_length=1)
    customer_phone: str = Field(min_length=10, max_length=30)
    customer_email: str | None = None
    delivery: AddressIn
    pickup_date: date
    packages: list[PackageIn] = Field(min_length=1)
    special_instructions: str = ""

    def total_weight_kg(self) -> float:
        return round(sum((p.weight_kg or 0) * p.quantity for p in self.packages), 2)
