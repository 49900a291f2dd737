# swimdesk/models/catalog.py
"""
Catalogue models: the class types on offer and the credit packages for sale.
"""

from sqlalchemy import CheckConstraint, Column, Integer, Numeric, String, Text

from ..core.enums import Difficulty
from ..core.ulid_helper import generate_ulid
from ..database import Base


class ClassTypeModel(Base):
    """
    A kind of lesson (e.g. "Beginner Freestyle").

    ``price`` holds the single-lesson price; the entity calls it ``price_single``.
    ``capacity`` is optional and, when set, becomes the default capacity of new
    sessions of this type.
    """

    __tablename__ = "class_types"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False, default=0)
    price_package = Column(Numeric(10, 2), nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=False)
    difficulty = Column(String(20), nullable=False, default=Difficulty.BEGINNER.value)
    capacity = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_class_types_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<ClassType {self.name} ({self.duration_minutes}m)>"


class PackageModel(Base):
    """A bundle of lesson credits sold at a fixed price."""

    __tablename__ = "packages"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    name = Column(String(120), nullable=False)
    credits = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=False, default="")

    __table_args__ = (CheckConstraint("credits > 0", name="ck_packages_credits_positive"),)

    def __repr__(self) -> str:
        return f"<Package {self.name} ({self.credits} credits)>"
