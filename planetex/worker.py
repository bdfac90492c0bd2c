# planetex/worker.py
"""
Фоновый поток синтеза текстур: очередь задач и очередь результатов
"""

import threading
import time
import warnings
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Callable, List, Optional

from .buffers import PixelBuffer
from .config import NoiseConfiguration
from .errors import SynthesisError
from .simplex_noise import warm_up
from .synthesis import SynthesisResult, synthesize


@dataclass
class SynthesisRequest:
    """
    Задача синтеза одного уровня. Буферы принадлежат задаче: отправитель
    передает их через PixelBuffer.transfer() и больше к ним не обращается.
    """
    generation: int
    tier: int
    seed: int
    layers: NoiseConfiguration
    height: PixelBuffer
    specular: PixelBuffer
    diffuse: PixelBuffer


@dataclass
class SynthesisOutcome:
    """Результат задачи: либо result, либо error"""
    generation: int
    tier: int
    result: Optional[SynthesisResult] = None
    error: Optional[BaseException] = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    def release(self) -> None:
        if self.result is not None:
            self.result.release()


class SynthesisWorker:
    """
    Один рабочий поток, выполняющий synthesize() вне координирующего потока

    submit() и drain() никогда не блокируют вызывающего. Поток
    запускается при первой задаче и останавливается stop(); start()
    сначала прогревает numba-ядра в вызывающем потоке.
    """

    def __init__(self, synthesize_fn: Callable[..., SynthesisResult] = synthesize,
                 name: str = "planetex-synthesis"):
        self._synthesize = synthesize_fn
        self.name = name
        self.task_queue: Queue = Queue()
        self.result_queue: Queue = Queue()
        self._thread: Optional[threading.Thread] = None
        self.running = False

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        warm_up()
        self.running = True
        self._thread = threading.Thread(target=self._worker_loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Остановка потока; незавершенные задачи отбрасываются"""
        self.running = False
        if self._thread is None:
            return
        self.task_queue.put(None)  # Sentinel
        self._thread.join(timeout=timeout)
        self._thread = None
        while True:
            try:
                request = self.task_queue.get_nowait()
            except Empty:
                break
            if request is not None:
                _release_request(request)

    def submit(self, request: SynthesisRequest) -> None:
        if not self.running:
            self.start()
        self.task_queue.put(request)

    def drain(self) -> List[SynthesisOutcome]:
        """Все готовые результаты без ожидания"""
        outcomes = []
        while True:
            try:
                outcomes.append(self.result_queue.get_nowait())
            except Empty:
                return outcomes

    def _worker_loop(self) -> None:
        while self.running:
            request = self.task_queue.get()
            if request is None:  # Sentinel
                break
            self.result_queue.put(self._run(request))

    def _run(self, request: SynthesisRequest) -> SynthesisOutcome:
        started = time.perf_counter()
        try:
            result = self._synthesize(request.seed, request.layers, request.height,
                                      request.specular, request.diffuse)
        except Exception as e:
            warnings.warn(f"Synthesis worker error at {request.tier}px: {e}")
            _release_request(request)
            error = SynthesisError(f"synthesis failed at {request.tier}px: {e}", request.tier)
            error.__cause__ = e
            return SynthesisOutcome(request.generation, request.tier, error=error,
                                    elapsed=time.perf_counter() - started)
        _release_request(request, keep=(result.height, result.specular, result.diffuse))
        return SynthesisOutcome(request.generation, request.tier, result=result,
                                elapsed=time.perf_counter() - started)


def _release_request(request: SynthesisRequest, keep=()) -> None:
    """Освобождение входных буферов, кроме возвращенных в результате"""
    kept = {id(buffer) for buffer in keep}
    for buffer in (request.height, request.specular, request.diffuse):
        if id(buffer) not in kept:
            buffer.release()
