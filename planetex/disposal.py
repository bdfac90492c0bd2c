# planetex/disposal.py
"""
Отложенное освобождение ресурсов после замены текстур
"""

import heapq
import itertools
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class DisposalScheduler:
    """
    Очередь ресурсов, которые нужно освободить не раньше заданного момента

    Ресурс - любой объект с методом dispose(). Освобождение выполняется в
    координирующем потоке из run_due(); flush() освобождает все сразу
    (при завершении работы).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._heap: List[Tuple[float, int, Any]] = []
        self._counter = itertools.count()
        self.released = 0
        self.failed = 0

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def next_due(self) -> Optional[float]:
        return self._heap[0][0] if self._heap else None

    def schedule(self, resource: Any, delay: float, now: Optional[float] = None) -> float:
        """
        Освободить resource не раньше now + delay

        Returns:
            Момент, начиная с которого ресурс будет освобожден
        """
        if delay < 0:
            raise ValueError(f"disposal delay must be >= 0, got {delay}")
        now = self.clock() if now is None else now
        due = now + delay
        heapq.heappush(self._heap, (due, next(self._counter), resource))
        return due

    def run_due(self, now: Optional[float] = None) -> int:
        """Освобождение всех ресурсов, срок которых наступил"""
        now = self.clock() if now is None else now
        count = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, resource = heapq.heappop(self._heap)
            self._dispose(resource)
            count += 1
        return count

    def flush(self) -> int:
        """Освобождение всего, независимо от срока"""
        count = 0
        while self._heap:
            _, _, resource = heapq.heappop(self._heap)
            self._dispose(resource)
            count += 1
        return count

    def _dispose(self, resource: Any) -> None:
        logger.debug("Disposing %r", resource)
        try:
            resource.dispose()
        except Exception:
            # Сбой одного ресурса не мешает освободить остальные
            self.failed += 1
            logger.exception("Failed to dispose %r", resource)
            return
        self.released += 1
