from sqlalchemy import Column, Integer, Float, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from .base import BaseModel


class Question(BaseModel):
    __tablename__ = 'questions'

    student_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)
    homework_id = Column(Integer, ForeignKey('homeworks.id'), nullable=False, index=True)

    question_text = Column(Text, nullable=False)
    is_answered = Column(Boolean, default=False, nullable=False, index=True)

    # Relationships
    answers = relationship("Answer", back_populates="question", lazy='dynamic', order_by="Answer.created_at")


class Answer(BaseModel):
    __tablename__ = 'answers'

    question_id = Column(Integer, ForeignKey('questions.id'), nullable=False, index=True)
    answerer_id = Column(Integer, ForeignKey('profiles.id'), nullable=False)

    answer_text = Column(Text, nullable=False)
    is_from_teacher = Column(Boolean, default=False, nullable=False)
    tokens_earned = Column(Float, default=0.0, nullable=False)

    # Relationships
    question = relationship("Question", back_populates="answers")
