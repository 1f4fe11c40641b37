from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, DateTime, Text, CheckConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class Homework(BaseModel):
    __tablename__ = 'homeworks'
    __table_args__ = (
        CheckConstraint('max_students >= 1', name='ck_homework_max_students'),
        CheckConstraint('current_students >= 0', name='ck_homework_current_students'),
    )

    teacher_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)

    # Capacity
    max_students = Column(Integer, nullable=False, default=1)
    current_students = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, default=True, nullable=False)
    deadline = Column(DateTime)

    # Relationships
    teacher = relationship("Profile", back_populates="homeworks")
    enrollments = relationship("Enrollment", back_populates="homework", lazy='dynamic')
    resources = relationship("TaskResource", back_populates="homework", lazy='dynamic')


class TaskResource(BaseModel):
    __tablename__ = 'task_resources'

    homework_id = Column(Integer, ForeignKey('homeworks.id'), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey('profiles.id'), nullable=False)

    file_url = Column(String(1000), nullable=False)
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(100))

    # Relationships
    homework = relationship("Homework", back_populates="resources")
