from datetime import datetime
from typing import Dict, Iterable, List, Optional
from sqlalchemy.exc import IntegrityError
from educhain.database import get_db, DatabaseManager
from educhain.errors import AuthorizationError, DuplicateError, NotFoundError, ValidationError
from educhain.integrations import StorageClient
from educhain.models import Enrollment, Homework, Profile, Submission, TaskResource
from educhain.models.enrollment import EnrollmentStatus
from educhain.models.profile import ProfileRole
from educhain.models.token_transaction import TransactionType
from educhain.services.ledger_service import append_transaction, spend_for_task
from educhain.services.serializers import enrollment_to_dict, file_to_dict, homework_to_dict
from educhain.utils.validators import parse_deadline, validate_text
from config.config import Config
from educhain.utils.logger import get_logger

logger = get_logger(__name__)


class HomeworkService:
    """Service for homeworks, enrollments and submissions"""

    def __init__(self, storage: StorageClient = None):
        self.resource_db = DatabaseManager(TaskResource)
        self.submission_db = DatabaseManager(Submission)
        self.storage = storage or StorageClient()

    def create_homework(self, teacher_id: int, data: Dict, files: Iterable = None) -> Dict:
        """Create a homework, paying its token cost in the same transaction.

        Resource files are uploaded afterwards; each reports its own outcome
        and a failed upload never undoes the homework or the token spend.
        """
        title = data.get('title')
        valid, error = validate_text(title, 'Title', max_length=255)
        if not valid:
            raise ValidationError(error)
        title = title.strip()

        description = data.get('description')
        if description is not None and not isinstance(description, str):
            raise ValidationError('Description must be text')

        try:
            max_students = int(data.get('max_students', 1))
        except (TypeError, ValueError):
            raise ValidationError('max_students must be a number')
        if max_students < 1:
            raise ValidationError('max_students must be at least 1')

        valid, deadline = parse_deadline(data.get('deadline'))
        if not valid:
            raise ValidationError('Deadline must be an ISO-8601 date')
        if deadline and deadline <= datetime.utcnow():
            raise ValidationError('Deadline must be in the future')

        with get_db() as db:
            spend_for_task(db, teacher_id, description=f"Created homework: {title}")

            homework = Homework(
                teacher_id=teacher_id,
                title=title,
                description=(description or '').strip() or None,
                max_students=max_students,
                deadline=deadline
            )
            db.add(homework)
            db.flush()
            result = homework_to_dict(homework)

        logger.info(f"Teacher {teacher_id} created homework {result['id']}: {title}")

        result['resources'] = [
            self._store_resource(result['id'], teacher_id, f) for f in (files or [])
        ]
        return result

    def _store_resource(self, homework_id: int, teacher_id: int, file) -> Dict:
        url = self._upload(f"homeworks/{homework_id}", file)
        if not url:
            return {'file_name': file.filename, 'success': False, 'error': 'Upload failed'}

        resource = self.resource_db.create(
            homework_id=homework_id,
            teacher_id=teacher_id,
            file_url=url,
            file_name=file.filename,
            file_type=file.mimetype
        )
        result = file_to_dict(resource)
        result['success'] = True
        return result

    def _upload(self, folder: str, file) -> Optional[str]:
        content = file.read()
        if not content:
            logger.warning(f"Skipping empty upload {file.filename}")
            return None
        path = self.storage.build_path(folder, file.filename)
        return self.storage.upload(path, content, file.mimetype)

    def get_homework(self, homework_id: int) -> Dict:
        with get_db() as db:
            homework = db.query(Homework).filter_by(id=homework_id).first()
            if not homework:
                raise NotFoundError('Homework not found')
            result = homework_to_dict(homework)
            result['resources'] = [file_to_dict(r) for r in homework.resources.order_by(TaskResource.id)]
            return result

    def get_available_homeworks(self) -> List[Dict]:
        """Active homeworks with free slots, newest first"""
        with get_db() as db:
            homeworks = db.query(Homework).filter(
                Homework.is_active.is_(True),
                Homework.current_students < Homework.max_students
            ).order_by(Homework.created_at.desc(), Homework.id.desc()).all()
            return [homework_to_dict(h) for h in homeworks]

    def get_teacher_homeworks(self, teacher_id: int) -> List[Dict]:
        with get_db() as db:
            homeworks = db.query(Homework).filter_by(teacher_id=teacher_id).order_by(
                Homework.created_at.desc(), Homework.id.desc()
            ).all()
            return [homework_to_dict(h) for h in homeworks]

    def enroll(self, student_id: int, homework_id: int) -> Dict:
        """Register a student in a homework while slots remain"""
        try:
            with get_db() as db:
                student = db.query(Profile).filter_by(id=student_id).first()
                if not student:
                    raise NotFoundError('Student not found')
                if student.role != ProfileRole.STUDENT:
                    raise AuthorizationError('Only students can enroll in homeworks')

                homework = db.query(Homework).filter_by(id=homework_id).first()
                if not homework:
                    raise NotFoundError('Homework not found')

                existing = db.query(Enrollment).filter_by(
                    student_id=student_id, homework_id=homework_id
                ).first()
                if existing:
                    raise DuplicateError('You are already enrolled in this task')

                # Claim a slot only if one is still free
                claimed = db.query(Homework).filter(
                    Homework.id == homework_id,
                    Homework.is_active.is_(True),
                    Homework.current_students < Homework.max_students
                ).update(
                    {Homework.current_students: Homework.current_students + 1},
                    synchronize_session=False
                )
                if not claimed:
                    if not homework.is_active:
                        raise ValidationError('This task is closed')
                    raise ValidationError('This task is full')

                enrollment = Enrollment(
                    student_id=student_id,
                    homework_id=homework_id,
                    status=EnrollmentStatus.ACTIVE
                )
                db.add(enrollment)
                db.flush()

                logger.info(f"Student {student_id} enrolled in homework {homework_id}")
                return enrollment_to_dict(enrollment)

        except IntegrityError:
            raise DuplicateError('You are already enrolled in this task')

    def get_enrollments(self, student_id: int = None, homework_id: int = None,
                        status: str = None) -> List[Dict]:
        """Enrollments matching the given filters, newest first"""
        with get_db() as db:
            query = db.query(Enrollment)
            if student_id is not None:
                query = query.filter(Enrollment.student_id == student_id)
            if homework_id is not None:
                query = query.filter(Enrollment.homework_id == homework_id)
            if status is not None:
                try:
                    query = query.filter(Enrollment.status == EnrollmentStatus(status))
                except ValueError:
                    raise ValidationError(f'Unknown enrollment status: {status}')
            enrollments = query.order_by(Enrollment.created_at.desc(), Enrollment.id.desc()).all()

            results = []
            for enrollment in enrollments:
                data = enrollment_to_dict(enrollment)
                data['submissions'] = [
                    file_to_dict(s) for s in enrollment.submissions.order_by(Submission.id)
                ]
                results.append(data)
            return results

    def complete_enrollment(self, enrollment_id: int, student_id: int = None,
                            submission_text: str = None, files: Iterable = None) -> Dict:
        """Submit work: active -> completed, then upload any files"""
        if submission_text is not None:
            if not isinstance(submission_text, str):
                raise ValidationError('Submission text must be text')
            submission_text = submission_text.strip() or None

        with get_db() as db:
            enrollment = db.query(Enrollment).filter_by(id=enrollment_id).first()
            if not enrollment:
                raise NotFoundError('Enrollment not found')
            if student_id is not None and enrollment.student_id != student_id:
                raise AuthorizationError('You can only submit your own work')

            homework = db.query(Homework).filter_by(id=enrollment.homework_id).first()
            if (enrollment.status == EnrollmentStatus.ACTIVE and homework.deadline
                    and homework.deadline < datetime.utcnow()):
                raise ValidationError('The deadline for this task has passed')

            transitioned = db.query(Enrollment).filter(
                Enrollment.id == enrollment_id,
                Enrollment.status == EnrollmentStatus.ACTIVE
            ).update({
                Enrollment.status: EnrollmentStatus.COMPLETED,
                Enrollment.submission_text: submission_text,
                Enrollment.completed_at: datetime.utcnow()
            }, synchronize_session=False)
            if not transitioned:
                if enrollment.status == EnrollmentStatus.MISSED:
                    raise ValidationError('The deadline for this task has passed')
                raise ValidationError('This work has already been submitted')

            db.refresh(enrollment)
            result = enrollment_to_dict(enrollment)

        logger.info(f"Enrollment {enrollment_id} submitted")

        result['submissions'] = [
            self._store_submission(result, f) for f in (files or [])
        ]
        return result

    def _store_submission(self, enrollment: Dict, file) -> Dict:
        url = self._upload(f"submissions/{enrollment['id']}", file)
        if not url:
            return {'file_name': file.filename, 'success': False, 'error': 'Upload failed'}

        submission = self.submission_db.create(
            enrollment_id=enrollment['id'],
            student_id=enrollment['student_id'],
            homework_id=enrollment['homework_id'],
            file_url=url,
            file_name=file.filename,
            file_type=file.mimetype
        )
        result = file_to_dict(submission)
        result['success'] = True
        return result

    def apply_deadline_penalties(self, student_id: int = None, now: datetime = None) -> List[Dict]:
        """Mark overdue active enrollments as missed and charge the penalty.

        Each enrollment is penalized once, by its active -> missed transition.
        The penalty is capped at the available balance.
        """
        now = now or datetime.utcnow()
        applied = []

        with get_db() as db:
            query = db.query(Enrollment).join(Homework, Enrollment.homework_id == Homework.id).filter(
                Enrollment.status == EnrollmentStatus.ACTIVE,
                Homework.deadline.isnot(None),
                Homework.deadline < now
            )
            if student_id is not None:
                query = query.filter(Enrollment.student_id == student_id)

            for enrollment in query.all():
                transitioned = db.query(Enrollment).filter(
                    Enrollment.id == enrollment.id,
                    Enrollment.status == EnrollmentStatus.ACTIVE
                ).update({Enrollment.status: EnrollmentStatus.MISSED}, synchronize_session=False)
                if not transitioned:
                    continue

                balance = db.query(Profile.token_balance).filter(
                    Profile.id == enrollment.student_id
                ).scalar() or 0.0
                penalty = min(Config.DEADLINE_PENALTY, max(balance, 0.0))
                if penalty > 0:
                    append_transaction(
                        db, enrollment.student_id, -penalty, TransactionType.PENALTY,
                        f"Missed deadline for homework {enrollment.homework_id}",
                        min_balance=penalty
                    )

                applied.append({
                    'enrollment_id': enrollment.id,
                    'student_id': enrollment.student_id,
                    'homework_id': enrollment.homework_id,
                    'penalty': penalty
                })
                logger.info(
                    f"Enrollment {enrollment.id} missed its deadline, "
                    f"student {enrollment.student_id} charged {penalty:g}"
                )

        return applied

    def close_expired_homeworks(self, now: datetime = None) -> int:
        """Deactivate homeworks whose deadline has passed"""
        now = now or datetime.utcnow()
        with get_db() as db:
            closed = db.query(Homework).filter(
                Homework.is_active.is_(True),
                Homework.deadline.isnot(None),
                Homework.deadline < now
            ).update({Homework.is_active: False}, synchronize_session=False)

        if closed:
            logger.info(f"Closed {closed} expired homeworks")
        return closed
