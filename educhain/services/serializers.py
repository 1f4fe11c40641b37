from typing import Dict


def _iso(value):
    return value.isoformat() if value else None


def profile_to_dict(profile) -> Dict:
    return {
        'id': profile.id,
        'wallet_address': profile.wallet_address,
        'username': profile.username,
        'role': profile.role.value,
        'rating': round(profile.rating, 2),
        'total_reviews': profile.total_reviews,
        'upvotes': profile.upvotes,
        'downvotes': profile.downvotes,
        'completed_count': profile.completed_count,
        'is_mentor': profile.is_mentor,
        'token_balance': profile.token_balance,
        'created_at': _iso(profile.created_at)
    }


def transaction_to_dict(transaction) -> Dict:
    return {
        'id': transaction.id,
        'profile_id': transaction.profile_id,
        'amount': transaction.amount,
        'type': transaction.transaction_type.value,
        'description': transaction.description,
        'created_at': _iso(transaction.created_at)
    }


def homework_to_dict(homework) -> Dict:
    return {
        'id': homework.id,
        'teacher_id': homework.teacher_id,
        'title': homework.title,
        'description': homework.description,
        'max_students': homework.max_students,
        'current_students': homework.current_students,
        'is_active': homework.is_active,
        'deadline': _iso(homework.deadline),
        'created_at': _iso(homework.created_at)
    }


def file_to_dict(record) -> Dict:
    """TaskResource or Submission"""
    data = {
        'id': record.id,
        'file_url': record.file_url,
        'file_name': record.file_name,
        'file_type': record.file_type,
        'created_at': _iso(record.created_at)
    }
    if hasattr(record, 'status'):
        data['status'] = record.status.value
        data['reviewed_at'] = _iso(record.reviewed_at)
    return data


def enrollment_to_dict(enrollment) -> Dict:
    return {
        'id': enrollment.id,
        'student_id': enrollment.student_id,
        'homework_id': enrollment.homework_id,
        'status': enrollment.status.value,
        'submission_text': enrollment.submission_text,
        'completed_at': _iso(enrollment.completed_at),
        'review_score': enrollment.review_score,
        'review_comment': enrollment.review_comment,
        'enrolled_at': _iso(enrollment.created_at)
    }


def review_to_dict(review) -> Dict:
    return {
        'id': review.id,
        'reviewer_id': review.reviewer_id,
        'student_id': review.student_id,
        'homework_id': review.homework_id,
        'stars': review.stars,
        'comment': review.comment,
        'created_at': _iso(review.created_at)
    }


def answer_to_dict(answer) -> Dict:
    return {
        'id': answer.id,
        'question_id': answer.question_id,
        'answerer_id': answer.answerer_id,
        'answer_text': answer.answer_text,
        'is_from_teacher': answer.is_from_teacher,
        'tokens_earned': answer.tokens_earned,
        'created_at': _iso(answer.created_at)
    }


def question_to_dict(question, answers=None) -> Dict:
    data = {
        'id': question.id,
        'student_id': question.student_id,
        'homework_id': question.homework_id,
        'question_text': question.question_text,
        'is_answered': question.is_answered,
        'created_at': _iso(question.created_at)
    }
    if answers is not None:
        data['answers'] = [answer_to_dict(a) for a in answers]
    return data
