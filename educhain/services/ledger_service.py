from typing import Dict, List
from sqlalchemy import func
from educhain.database import get_db
from educhain.errors import AuthorizationError, InsufficientTokensError, NotFoundError, ValidationError
from educhain.models import Profile, TokenTransaction
from educhain.models.profile import ProfileRole
from educhain.models.token_transaction import TransactionType
from educhain.services.serializers import transaction_to_dict
from config.config import Config
from educhain.utils.logger import get_logger

logger = get_logger(__name__)


def append_transaction(db, profile_id: int, amount: float, transaction_type: TransactionType,
                       description: str = None, min_balance: float = None) -> TokenTransaction:
    """Append a ledger entry and move the profile balance by the same amount.

    Runs inside the caller's session so the entry and the balance change
    commit or roll back together. With ``min_balance`` the balance update
    only applies while ``token_balance >= min_balance``.
    """
    query = db.query(Profile).filter(Profile.id == profile_id)
    if min_balance is not None:
        query = query.filter(Profile.token_balance >= min_balance)

    updated = query.update(
        {Profile.token_balance: Profile.token_balance + amount},
        synchronize_session=False
    )
    if not updated:
        if min_balance is not None:
            raise InsufficientTokensError(f'You need at least {min_balance:g} tokens for this')
        raise NotFoundError('Profile not found')

    transaction = TokenTransaction(
        profile_id=profile_id,
        amount=amount,
        transaction_type=transaction_type,
        description=description
    )
    db.add(transaction)
    db.flush()
    return transaction


def spend_for_task(db, teacher_id: int, cost: float = None,
                   description: str = "Created homework") -> TokenTransaction:
    """Charge the task creation cost inside the caller's session"""
    cost = Config.TASK_CREATION_COST if cost is None else cost
    if cost <= 0:
        raise ValidationError('Cost must be positive')

    teacher = db.query(Profile).filter_by(id=teacher_id).first()
    if not teacher:
        raise NotFoundError('Teacher not found')
    if teacher.role != ProfileRole.TEACHER:
        raise AuthorizationError('Only teachers can create homeworks')

    transaction = append_transaction(
        db, teacher_id, -cost, TransactionType.SPENT, description, min_balance=cost
    )
    logger.info(f"Teacher {teacher_id} spent {cost:g} tokens: {description}")
    return transaction


def welcome_bonus_for(role: ProfileRole) -> float:
    if role == ProfileRole.TEACHER:
        return Config.TEACHER_WELCOME_BONUS
    return Config.STUDENT_WELCOME_BONUS


def credit_welcome_bonus(db, profile_id: int, role: ProfileRole) -> TokenTransaction:
    """Append the one-off ``initial`` grant inside the caller's session"""
    already_granted = db.query(TokenTransaction).filter_by(
        profile_id=profile_id,
        transaction_type=TransactionType.INITIAL
    ).first()
    if already_granted:
        raise ValidationError('Welcome bonus already granted')

    amount = welcome_bonus_for(role)
    transaction = append_transaction(
        db, profile_id, amount, TransactionType.INITIAL,
        f"Welcome bonus for {role.value}s"
    )
    logger.info(f"Granted welcome bonus of {amount:g} to profile {profile_id}")
    return transaction


class LedgerService:
    """Service for the token ledger"""

    def grant_welcome_bonus(self, profile_id: int, role) -> Dict:
        """Credit the one-off onboarding grant for a role"""
        role = ProfileRole(role) if isinstance(role, str) else role
        with get_db() as db:
            transaction = credit_welcome_bonus(db, profile_id, role)
            return transaction_to_dict(transaction)

    def spend_tokens_for_task_creation(self, teacher_id: int, cost: float = None,
                                       description: str = 'Created homework') -> Dict:
        """Deduct the task creation cost from a teacher"""
        with get_db() as db:
            transaction = spend_for_task(db, teacher_id, cost, description)
            return transaction_to_dict(transaction)

    def get_transactions(self, profile_id: int) -> List[Dict]:
        """Ledger entries for a profile, newest first"""
        with get_db() as db:
            transactions = db.query(TokenTransaction).filter(
                TokenTransaction.profile_id == profile_id
            ).order_by(TokenTransaction.created_at.desc(), TokenTransaction.id.desc()).all()
            return [transaction_to_dict(t) for t in transactions]

    def get_balance_summary(self, profile_id: int) -> Dict:
        """Compare the stored balance with the ledger sum"""
        with get_db() as db:
            profile = db.query(Profile).filter_by(id=profile_id).first()
            if not profile:
                raise NotFoundError('Profile not found')

            ledger_sum, count = db.query(
                func.coalesce(func.sum(TokenTransaction.amount), 0.0),
                func.count(TokenTransaction.id)
            ).filter(TokenTransaction.profile_id == profile_id).one()

            consistent = abs(profile.token_balance - ledger_sum) < 1e-9
            if not consistent:
                logger.error(
                    f"Balance mismatch for profile {profile_id}: "
                    f"stored {profile.token_balance}, ledger {ledger_sum}"
                )

            return {
                'profile_id': profile_id,
                'token_balance': profile.token_balance,
                'ledger_sum': ledger_sum,
                'transaction_count': count,
                'consistent': consistent
            }
