# swimdesk/models/purchase.py
"""
Purchase model.

Purchases are an append-only ledger: the package name, credit count and price
are snapshotted at purchase time so history survives catalogue edits.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from ..core.ulid_helper import generate_ulid
from ..database import Base


class PurchaseModel(Base):
    __tablename__ = "purchases"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(
        String(26), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    package_id = Column(String(26), ForeignKey("packages.id", ondelete="SET NULL"), nullable=True)
    package_name = Column(String(120), nullable=False)
    credits_purchased = Column(Integer, nullable=False)
    amount_paid = Column(Numeric(10, 2), nullable=False)
    purchase_date = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Purchase {self.package_name} x{self.credits_purchased} for {self.user_id}>"
