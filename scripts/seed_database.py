#!/usr/bin/env python3
"""
Script to seed the database with sample data for testing
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timedelta
from educhain.database import init_db, drop_db
from educhain.services.homework_service import HomeworkService
from educhain.services.profile_service import ProfileService
from educhain.services.question_service import QuestionService
from educhain.services.reputation_service import ReputationService

HOMEWORKS = [
    {
        'title': 'Build a REST API with Flask',
        'description': 'Three endpoints, JSON in and out, with tests.',
        'max_students': 5
    },
    {
        'title': 'Write an ERC-20 token walkthrough',
        'description': 'Explain each function of a minimal token contract.',
        'max_students': 3
    },
    {
        'title': 'Data cleaning with pandas',
        'description': 'Clean the provided CSV and document every step.',
        'max_students': 10
    },
    {
        'title': 'Intro to zero-knowledge proofs',
        'description': 'A one-page summary with one worked example.',
        'max_students': 4
    }
]


def wallet(n):
    return '0x' + format(n, '040x')


def main():
    """Seed teachers, students, homeworks and a reviewed mentor"""
    print("Resetting database...")
    drop_db()
    init_db()

    profiles = ProfileService()
    homeworks = HomeworkService()
    reputation = ReputationService()
    questions = QuestionService()

    teacher = profiles.create_profile(wallet(1), 'prof_ada', 'teacher')
    students = [
        profiles.create_profile(wallet(100 + i), f'student_{i}', 'student')
        for i in range(1, 5)
    ]
    print(f"Created 1 teacher and {len(students)} students")

    deadline = (datetime.utcnow() + timedelta(days=14)).isoformat()
    created = [
        homeworks.create_homework(teacher['id'], dict(hw, deadline=deadline))
        for hw in HOMEWORKS
    ]
    print(f"Created {len(created)} homeworks")

    # First student completes three homeworks with good reviews and becomes a mentor
    star_scores = [5, 4, 4]
    mentor = students[0]
    for homework, stars in zip(created, star_scores):
        enrollment = homeworks.enroll(mentor['id'], homework['id'])
        homeworks.complete_enrollment(enrollment['id'], submission_text='Done, see repo link.')
        reputation.record_review(teacher['id'], mentor['id'], homework['id'], stars, 'Solid work')
    reputation.upgrade_to_mentor(mentor['id'])
    print(f"{mentor['username']} is now a mentor")

    # Another student asks a question the mentor answers
    asker = students[1]
    homeworks.enroll(asker['id'], created[3]['id'])
    question = questions.ask_question(asker['id'], created[3]['id'], 'What is a witness?')
    questions.record_answer(question['id'], mentor['id'], 'The private input that satisfies the circuit.', False)

    # Some DAO votes
    for student in students[1:]:
        reputation.cast_vote(student['id'], mentor['id'], 'upvote')
    reputation.cast_vote(students[2]['id'], teacher['id'], 'upvote')

    print("Database seeded successfully!")


if __name__ == "__main__":
    main()
