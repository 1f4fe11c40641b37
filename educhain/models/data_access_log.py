from sqlalchemy import Column, String, Enum
import enum
from .base import BaseModel


class DataAccessAction(enum.Enum):
    VIEW = "view"
    EXPORT = "export"
    DELETE = "delete"


class DataAccessLog(BaseModel):
    __tablename__ = 'data_access_logs'

    # Keyed by wallet, not profile id, so entries outlive a deleted account
    wallet_address = Column(String(42), nullable=False, index=True)
    action = Column(Enum(DataAccessAction), nullable=False)
    data_type = Column(String(50), default='all')
