from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from config.config import Config
from educhain.models.base import Base


def _engine_options(url):
    if 'sqlite' not in url:
        return {}
    options = {'connect_args': {'check_same_thread': False}}
    # In-memory databases live on a single connection
    if ':memory:' in url or url.rstrip('/') == 'sqlite:':
        options['poolclass'] = StaticPool
    return options


# Create database engine
engine = create_engine(Config.DATABASE_URL, **_engine_options(Config.DATABASE_URL))

# Create session factory; instances stay readable after the scope closes
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


def init_db():
    """Initialize database, create all tables"""
    import educhain.models  # noqa: F401  Import all models
    Base.metadata.create_all(bind=engine)


def drop_db():
    """Drop all tables"""
    Base.metadata.drop_all(bind=engine)


@contextmanager
def get_db():
    """Provide a transactional scope for database operations"""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class DatabaseManager:
    """Database manager for CRUD operations"""

    def __init__(self, model_class):
        self.model_class = model_class

    def create(self, **kwargs):
        """Create a new record"""
        with get_db() as db:
            instance = self.model_class(**kwargs)
            db.add(instance)
            db.flush()
            db.refresh(instance)
            return instance

    def get(self, id):
        """Get record by ID"""
        with get_db() as db:
            return db.query(self.model_class).filter(self.model_class.id == id).first()

    def get_by(self, **kwargs):
        """Get record by field values"""
        with get_db() as db:
            return self._query(db, **kwargs).first()

    def filter(self, **kwargs):
        """Filter records by field values"""
        with get_db() as db:
            return self._query(db, **kwargs).all()

    def update(self, id, **kwargs):
        """Update a record"""
        with get_db() as db:
            instance = db.query(self.model_class).filter(self.model_class.id == id).first()
            if instance:
                for key, value in kwargs.items():
                    setattr(instance, key, value)
                db.flush()
                db.refresh(instance)
            return instance

    def count(self, **kwargs):
        """Count records"""
        with get_db() as db:
            return self._query(db, **kwargs).count()

    def exists(self, **kwargs):
        """Check if record exists"""
        return self.count(**kwargs) > 0

    def _query(self, db, **kwargs):
        query = db.query(self.model_class)
        for key, value in kwargs.items():
            query = query.filter(getattr(self.model_class, key) == value)
        return query
