from sqlalchemy import Column, Integer, ForeignKey, Enum, UniqueConstraint
import enum
from .base import BaseModel
from .profile import ProfileRole


class VoteType(enum.Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class Vote(BaseModel):
    __tablename__ = 'votes'
    __table_args__ = (
        UniqueConstraint('voter_id', 'voted_for_id', name='uq_vote_voter_target'),
    )

    voter_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)
    voted_for_id = Column(Integer, ForeignKey('profiles.id'), nullable=False, index=True)

    vote_type = Column(Enum(VoteType), nullable=False)
    voter_role = Column(Enum(ProfileRole), nullable=False)
