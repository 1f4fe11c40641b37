from sqlalchemy import Column, String, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class Review(BaseModel):
    __tablename__ = 'reviews'
    __table_args__ = (
        UniqueConstraint('reviewer_id', 'student_id', 'homework_id', name='uq_review_reviewer_student_homework'),
        CheckConstraint('stars BETWEEN 1 AND 5', name='ck_review_stars'),
    )

    reviewer_id = Column(Integer, ForeignKey('profiles.id'), nullable=False)
    student_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)
    homework_id = Column(Integer, ForeignKey('homeworks.id'), nullable=False)

    stars = Column(Integer, nullable=False)  # 1-5 scale
    comment = Column(String(1000))

    # Relationships
    reviewer = relationship("Profile", back_populates="reviews_given", foreign_keys=[reviewer_id])
    student = relationship("Profile", back_populates="reviews_received", foreign_keys=[student_id])
