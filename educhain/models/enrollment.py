from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from .base import BaseModel


class EnrollmentStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    REVIEWED = "reviewed"
    MISSED = "missed"


class SubmissionStatus(enum.Enum):
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"


class Enrollment(BaseModel):
    __tablename__ = 'enrollments'
    __table_args__ = (
        UniqueConstraint('student_id', 'homework_id', name='uq_enrollment_student_homework'),
    )

    student_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)
    homework_id = Column(Integer, ForeignKey('homeworks.id'), nullable=False, index=True)

    status = Column(Enum(EnrollmentStatus), default=EnrollmentStatus.ACTIVE, nullable=False, index=True)

    # Student submission
    submission_text = Column(Text)
    completed_at = Column(DateTime)

    # Teacher review, copied from the Review row
    review_score = Column(Integer)
    review_comment = Column(String(1000))

    # Relationships
    student = relationship("Profile", back_populates="enrollments")
    homework = relationship("Homework", back_populates="enrollments")
    submissions = relationship("Submission", back_populates="enrollment", lazy='dynamic')


class Submission(BaseModel):
    __tablename__ = 'submissions'

    enrollment_id = Column(Integer, ForeignKey('enrollments.id'), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey('profiles.id'), nullable=False)
    homework_id = Column(Integer, ForeignKey('homeworks.id'), nullable=False)

    file_url = Column(String(1000), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100))

    status = Column(Enum(SubmissionStatus), default=SubmissionStatus.SUBMITTED, nullable=False)
    reviewed_at = Column(DateTime)

    # Relationships
    enrollment = relationship("Enrollment", back_populates="submissions")
