from .profile import Profile
from .homework import Homework, TaskResource
from .enrollment import Enrollment, Submission
from .question import Question, Answer
from .review import Review
from .vote import Vote
from .token_transaction import TokenTransaction
from .data_access_log import DataAccessLog

__all__ = [
    'Profile', 'Homework', 'TaskResource', 'Enrollment', 'Submission',
    'Question', 'Answer', 'Review', 'Vote', 'TokenTransaction', 'DataAccessLog'
]
