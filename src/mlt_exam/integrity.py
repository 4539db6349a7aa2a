"""Focus-loss tracking for exam integrity."""
import logging
from typing import Callable

logger = logging.getLogger(__name__)


class IntegrityMonitor:
    """Counts visible -> hidden transitions of the exam surface.

    The count is advisory. It is reported through ``record`` and never
    blocks answering, navigation or finishing.
    """

    def __init__(self, record: Callable[[], int], hidden: bool = False):
        self._record = record
        self.hidden = hidden
        self.count = 0

    def observe(self, hidden: bool) -> int:
        if hidden and not self.hidden:
            self.count = self._record()
            logger.debug("Exam surface hidden, violation count now %d", self.count)
        self.hidden = hidden
        return self.count
