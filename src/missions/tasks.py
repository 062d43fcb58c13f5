"""Celery tasks for the missions app."""
from __future__ import annotations

import logging

from celery import shared_task

from missions.services import sweep_expired_missions

logger = logging.getLogger("simulator")


@shared_task(name="missions.tasks.sweep_expired_missions")
def sweep_expired_missions_task():
    """Fail every active mission whose deadline has passed."""
    failed = sweep_expired_missions()
    logger.info("Mission sweep failed=%s", failed)
    return {"failed_count": failed}
