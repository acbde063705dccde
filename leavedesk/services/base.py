import logging
from sqlalchemy.orm import Session


class BaseService:
    """Common plumbing for services bound to a database session."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(type(self).__module__)

    def log_warning(self, message: str, **extra):
        self._logger.warning(message, extra=extra or None)
