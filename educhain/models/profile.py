from sqlalchemy import Column, String, Float, Boolean, Enum, Integer
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class ProfileRole(enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"


class Profile(BaseModel):
    __tablename__ = 'profiles'

    # Identity
    wallet_address = Column(String(42), unique=True, nullable=False, index=True)  # lowercase
    username = Column(String(50))
    role = Column(Enum(ProfileRole), nullable=False)

    # Reputation
    rating = Column(Float, default=0.0, nullable=False)  # mean of received stars, 0-5
    total_reviews = Column(Integer, default=0, nullable=False)
    upvotes = Column(Integer, default=0, nullable=False)
    downvotes = Column(Integer, default=0, nullable=False)
    completed_count = Column(Integer, default=0, nullable=False)
    is_mentor = Column(Boolean, default=False, nullable=False)

    # Running sum of token_transactions.amount
    token_balance = Column(Float, default=0.0, nullable=False)

    # Relationships
    homeworks = relationship("Homework", back_populates="teacher", lazy='dynamic')
    enrollments = relationship("Enrollment", back_populates="student", lazy='dynamic')
    reviews_received = relationship("Review", back_populates="student", lazy='dynamic', foreign_keys='Review.student_id')
    reviews_given = relationship("Review", back_populates="reviewer", lazy='dynamic', foreign_keys='Review.reviewer_id')
    transactions = relationship("TokenTransaction", back_populates="profile", lazy='dynamic')
