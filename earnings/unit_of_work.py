import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from earnings.errors import EarningsError


logger = logging.getLogger(__name__)


def atomic(integrity_error=None, constraint=None):
    """
    Run the wrapped operation as one database transaction.

    Commits when the function returns and rolls back on any exception, so a
    rejected operation leaves every row as it was. When `integrity_error` is
    given, a unique-constraint violation is reported as that EarningsError.
    `constraint` narrows the mapping to violations whose database message
    names it (a column or index name); any other violation is re-raised.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                result = func(*args, **kwargs)
                db.session.commit()
                return result
            except EarningsError as e:
                db.session.rollback()
                logger.info(f"{func.__name__} rejected: {e.code} ({e.detail})")
                raise
            except IntegrityError as e:
                db.session.rollback()
                if integrity_error is None or (constraint and constraint not in str(e.orig)):
                    logger.exception(f"Integrity error in {func.__name__}")
                    raise
                logger.warning(f"{func.__name__} lost a uniqueness race: {e.orig}")
                raise integrity_error() from e
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception(f"Database error in {func.__name__}")
                raise
            except Exception:
                db.session.rollback()
                logger.exception(f"Unexpected error in {func.__name__}")
                raise
        return wrapper
    return decorator
