from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from invoice_workflow.core.config import settings
from invoice_workflow.core.exceptions import StateConflictError

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, echo=settings.sql_echo, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting a database session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_conflict(db: Session, what: str) -> None:
    """Commit the unit of work, turning a lost optimistic-lock race into a StateConflictError"""
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise StateConflictError(f"{what} was modified concurrently, reload and retry") from e
