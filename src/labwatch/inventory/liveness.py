"""
Passive liveness tracking.

There is no scheduler: the sweep runs as a precondition of the read paths
that report device status, so statuses are correct whenever someone looks.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from .models import utcnow
from .store import InventoryTransaction

logger = logging.getLogger(__name__)


class LivenessMonitor:
    """Demotes active devices that stopped reporting to offline."""

    def __init__(self, stale_after_hours: int = 24):
        self.stale_after = timedelta(hours=stale_after_hours)

    def sweep(self, tx: InventoryTransaction, now: Optional[datetime] = None) -> List[str]:
        """
        Mark active devices unseen for longer than the staleness window offline.

        Maintenance and already-offline devices are left alone; devices come
        back to active on their next ingestion.

        Returns:
            Hostnames demoted by this sweep
        """
        if now is None:
            now = utcnow()

        demoted = tx.mark_stale_offline(now - self.stale_after)
        if demoted:
            logger.info(f"Marked {len(demoted)} device(s) offline: {', '.join(demoted)}")
        return demoted
