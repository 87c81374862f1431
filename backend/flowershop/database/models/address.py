"""Delivery address model."""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from flowershop.database.base import BaseModel


class Address(BaseModel):
    """
    Postal address referenced by orders.

    Rows are never deduplicated: every "new address" submission at
    checkout inserts a fresh row.
    """

    __tablename__ = "addresses"
    __table_args__ = (
        CheckConstraint("house_number > 0", name="house_number_positive"),
        {"comment": "Delivery addresses"},
    )

    postal_code: Mapped[str] = mapped_column(String(10), nullable=False)
    street: Mapped[str] = mapped_column(String(200), nullable=False)
    house_number: Mapped[int] = mapped_column(Integer, nullable=False)

    @property
    def display_name(self) -> str:
        return f"{self.street} {self.house_number}, {self.postal_code}"
