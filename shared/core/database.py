import logging
from contextlib import contextmanager

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.orm.exc import StaleDataError

from shared.core.config import PERMIT_DATABASE_URL
from shared.core.exceptions import ConflictError, PermitServiceError
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)

Base = declarative_base()

# JSONB on postgres, plain JSON elsewhere (sqlite in tests)
JsonColumnType = JSON().with_variant(JSONB(), "postgresql")

POOL_SIZE = 2
MAX_OVERFLOW = 2


def build_engine(url: str):
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=POOL_SIZE,          # max idle connections
        max_overflow=MAX_OVERFLOW,      # max temporary extra connections
        pool_timeout=30       # wait time before failing
    )


permit_engine = build_engine(PERMIT_DATABASE_URL)
PermitSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=permit_engine)


# Dependency


def get_permit_db():
    db = PermitSessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit everything staged inside the block, or nothing at all.

    Entity writes and their audit entries are staged on the same session, so
    a rollback here discards both. A version-column mismatch on flush means
    another writer committed first and surfaces as a conflict.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning("Stale write rejected: %s", e)
        raise ConflictError(
            "Record was modified by another request. Reload and try again.",
            app_status_code=AppStatusCode.STALE_VERSION,
        )
    except IntegrityError as e:
        db.rollback()
        logger.warning("Integrity violation: %s", e.orig)
        raise ConflictError("Write conflicts with an existing record")
    except PermitServiceError:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("Transaction rolled back")
        raise
