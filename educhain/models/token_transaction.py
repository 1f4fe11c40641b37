from sqlalchemy import Column, String, Integer, Float, ForeignKey, Enum
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class TransactionType(enum.Enum):
    INITIAL = "initial"
    EARNED = "earned"
    SPENT = "spent"
    MENTOR_REWARD = "mentor_reward"
    PENALTY = "penalty"


class TokenTransaction(BaseModel):
    """Append-only ledger entry. Never updated; removed only with the account."""
    __tablename__ = 'token_transactions'

    profile_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)

    amount = Column(Float, nullable=False)  # signed
    transaction_type = Column(Enum(TransactionType), nullable=False)
    description = Column(String(500))

    # Relationships
    profile = relationship("Profile", back_populates="transactions")
