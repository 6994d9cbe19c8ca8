"""Create coordination tables if they do not exist."""

import logging

from services.coordination.src.coordination.db.engine import get_engine
from services.coordination.src.coordination.db.models import metadata

logger = logging.getLogger(__name__)


def run_migrations(engine=None) -> None:
    engine = engine or get_engine()
    metadata.create_all(engine)
    logger.info("migrations_applied", extra={"tables": sorted(metadata.tables)})
