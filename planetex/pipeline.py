# planetex/pipeline.py
"""
Прогрессивная генерация текстур планеты

Менеджер строит текстуры поочередно на нескольких уровнях разрешения
(256 -> 512 -> 1024), отдает тяжелый синтез фоновому потоку и после
каждого уровня атомарно подменяет текстуры материала. Замененные
текстуры освобождаются с задержкой, чтобы рендерер успел отпустить их.

Пример:
    manager = ProgressiveTextureManager(PlanetOptions(terrain_seed="abc"))
    mesh.material = manager.request_material()
    # в цикле рендеринга, раз в кадр:
    manager.poll()
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .atmosphere import build_atmosphere_material
from .buffers import PixelBuffer, ReferenceImage, prepare_base_buffers
from .config import (
    NoiseConfiguration,
    PipelineSettings,
    PlanetOptions,
    build_noise_layers,
    validate_noise_configuration,
)
from .disposal import DisposalScheduler
from .errors import PlanetexError, SynthesisError
from .gradient import ColorStop, generate_gradient
from .materials import DynamicTexture, Material, TextureSlots
from .normal_map import derive_normal_map
from .seeding import hash_string_to_int
from .synthesis import SynthesisResult
from .worker import SynthesisOutcome, SynthesisRequest, SynthesisWorker

logger = logging.getLogger(__name__)

SPECULAR_COLOR = (0.2, 0.2, 0.2)
SPECULAR_POWER = 14.0


class PipelineState(Enum):
    IDLE = "idle"
    SYNTHESIZING = "synthesizing"
    COMMITTED = "committed"
    SETTLED = "settled"
    HALTED = "halted"       # Синтез уровня завершился ошибкой


@dataclass(frozen=True)
class TextureSet:
    """Четыре карты одного уровня разрешения"""
    tier: int
    height: DynamicTexture
    specular: DynamicTexture
    diffuse: DynamicTexture
    normal: DynamicTexture

    def textures(self) -> List[DynamicTexture]:
        return [self.height, self.specular, self.diffuse, self.normal]

    def dispose(self) -> None:
        for texture in self.textures():
            texture.dispose()


@dataclass(frozen=True)
class StageEvent:
    """Событие конвейера, возвращаемое poll()"""
    kind: str                  # committed | settled | failed | discarded
    tier: int
    generation: int
    textures: Optional[TextureSet] = None
    error: Optional[BaseException] = None


class ProgressiveTextureManager:
    """
    Координатор прогрессивной генерации текстур

    Все методы вызываются из одного (координирующего) потока. Результаты
    фонового синтеза применяются только в poll(), поэтому поток рендеринга
    никогда не ждет вычислений.
    """

    def __init__(self,
                 options: PlanetOptions,
                 name: str = "planetTexture",
                 settings: Optional[PipelineSettings] = None,
                 worker: Any = None,
                 reference: Optional[ReferenceImage] = None,
                 gradient_factory: Callable[[int], Sequence[ColorStop]] = generate_gradient,
                 scheduler: Optional[DisposalScheduler] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.options = options
        self.settings = settings or PipelineSettings()
        self._clock = clock
        self.scheduler = scheduler if scheduler is not None else DisposalScheduler(clock)
        self._owns_worker = worker is None
        self._worker = worker if worker is not None else SynthesisWorker()
        self._reference = reference or ReferenceImage.sphere()

        self._noise_layers: NoiseConfiguration = build_noise_layers(options)
        self.seed = hash_string_to_int(options.terrain_seed)
        self._gradient = list(gradient_factory(self.seed))

        self._state = PipelineState.IDLE
        self._generation = 0
        self._tier_index: Optional[int] = None
        self._material: Optional[Material] = None
        self._atmosphere: Optional[Material] = None
        self._live: Optional[TextureSet] = None
        self._disposed = False
        self.history: List[int] = []

    # ------------------------------------------------------------------
    # Состояние
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_tier(self) -> Optional[int]:
        """Уровень, который синтезируется или был применен последним"""
        if self._tier_index is None:
            return None
        return self.settings.tiers[self._tier_index]

    @property
    def live_textures(self) -> Optional[TextureSet]:
        return self._live

    @property
    def material(self) -> Optional[Material]:
        """Текущий материал без запуска генерации"""
        return self._material

    @property
    def noise_configuration(self) -> NoiseConfiguration:
        return self._noise_layers

    @property
    def disposed(self) -> bool:
        return self._disposed

    # ------------------------------------------------------------------
    # Публичный интерфейс
    # ------------------------------------------------------------------

    def request_material(self) -> Material:
        """
        Материал поверхности. При первом вызове запускает генерацию;
        до применения первого уровня материал отображается каркасом.
        """
        self.ensure_started()
        return self._material

    def request_atmosphere_material(self) -> Material:
        if self._disposed:
            raise PlanetexError(f"{self.name} has been disposed")
        if self._atmosphere is None:
            self._atmosphere = build_atmosphere_material(self.options, self.name)
        return self._atmosphere

    def ensure_started(self) -> None:
        """
        Запуск конвейера, если он еще не запущен (идемпотентно)

        Raises:
            AssetUnavailableError: эталонное изображение высот недоступно
        """
        if self._disposed:
            raise PlanetexError(f"{self.name} has been disposed")
        if self._state is not PipelineState.IDLE:
            return
        self._reference.load()
        if self._material is None:
            self._material = self._create_material()
        logger.info("Starting texture pipeline for %s (seed %d, %d noise layers, tiers %s)",
                    self.name, self.seed, len(self._noise_layers), self.settings.tiers)
        self._begin_tier(0)

    def set_noise_configuration(self, layers: Iterable) -> None:
        """
        Замена слоев шума и перезапуск конвейера с первого уровня

        Незавершенный синтез для старых слоев не будет применен. Текущие
        материал и текстуры освобождаются с задержкой.

        Raises:
            ConfigurationError: слои некорректны (проверяется до любых выделений)
        """
        layers = validate_noise_configuration(layers)
        if self._disposed:
            raise PlanetexError(f"{self.name} has been disposed")

        now = self._clock()
        self._generation += 1
        if self._material is not None:
            self.scheduler.schedule(self._material, self.settings.material_grace_delay, now)
            self._material = None
        if self._live is not None:
            self.scheduler.schedule(self._live, self.settings.texture_grace_delay, now)
            self._live = None

        self._noise_layers = layers
        self._state = PipelineState.IDLE
        self._tier_index = None
        self.history = []
        logger.info("Noise configuration of %s replaced (%d layers), restarting",
                    self.name, len(layers))
        self.ensure_started()

    def poll(self, now: Optional[float] = None) -> List[StageEvent]:
        """
        Применение готовых результатов синтеза и освобождение ресурсов,
        срок которых наступил. Не блокирует; вызывается раз в кадр.

        Уровень, примененный на прошлом кадре (COMMITTED), здесь
        сменяется синтезом следующего.
        """
        events: List[StageEvent] = []
        if self._state is PipelineState.COMMITTED:
            self._begin_tier(self._tier_index + 1)
        for outcome in self._worker.drain():
            events.extend(self._handle_outcome(outcome, now))
        self.scheduler.run_due(now)
        return events

    def wait_until_settled(self, timeout: Optional[float] = None,
                           interval: float = 0.01) -> PipelineState:
        """Опрос poll() до SETTLED/HALTED или истечения timeout секунд"""
        self.ensure_started()
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._state not in (PipelineState.SETTLED, PipelineState.HALTED):
            self.poll()
            if self._state in (PipelineState.SETTLED, PipelineState.HALTED):
                break
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(interval)
        return self._state

    def dispose(self) -> None:
        """
        Освобождение материалов и текстур. Ничего не уничтожается сразу:
        все ставится в очередь с обычными задержками.
        """
        if self._disposed:
            return
        self._disposed = True
        self._generation += 1
        now = self._clock()
        if self._live is not None:
            self.scheduler.schedule(self._live, self.settings.texture_grace_delay, now)
            self._live = None
        for material in (self._material, self._atmosphere):
            if material is not None:
                self.scheduler.schedule(material, self.settings.teardown_grace_delay, now)
        self._material = None
        self._atmosphere = None
        self._state = PipelineState.IDLE
        self._tier_index = None

    def close(self, flush: bool = True) -> None:
        """Остановка фонового потока; flush освобождает все отложенное сразу"""
        self.dispose()
        if self._owns_worker:
            self._worker.stop()
        for outcome in self._worker.drain():
            outcome.release()
        if flush:
            self.scheduler.flush()

    def __enter__(self) -> "ProgressiveTextureManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Этапы уровня
    # ------------------------------------------------------------------

    def _create_material(self) -> Material:
        material = Material(self.name)
        material.wireframe = True  # без текстур показываем каркас
        material.specular_color = SPECULAR_COLOR
        material.specular_power = SPECULAR_POWER
        return material

    def _begin_tier(self, index: int) -> None:
        tier = self.settings.tiers[index]
        self._tier_index = index
        try:
            height, specular, diffuse = prepare_base_buffers(
                tier, self._reference, self._gradient, self.settings.gradient_strip)
        except MemoryError as e:
            self._halt(SynthesisError(f"cannot allocate {tier}px base buffers: {e}", tier))
            return

        request = SynthesisRequest(
            generation=self._generation,
            tier=tier,
            seed=self.seed,
            layers=self._noise_layers,
            height=height.transfer(),
            specular=specular.transfer(),
            diffuse=diffuse.transfer(),
        )
        self._state = PipelineState.SYNTHESIZING
        logger.debug("Synthesizing %dpx textures for %s", tier, self.name)
        self._worker.submit(request)

    def _handle_outcome(self, outcome: SynthesisOutcome,
                        now: Optional[float]) -> List[StageEvent]:
        if (outcome.generation != self._generation
                or self._state is not PipelineState.SYNTHESIZING
                or outcome.tier != self.current_tier):
            logger.warning("Discarding stale %dpx synthesis result (generation %d, current %d)",
                           outcome.tier, outcome.generation, self._generation)
            outcome.release()
            return [StageEvent("discarded", outcome.tier, outcome.generation)]

        if not outcome.ok:
            error = outcome.error
            if not isinstance(error, SynthesisError):
                error = SynthesisError(str(error), outcome.tier)
            self._halt(error)
            return [StageEvent("failed", outcome.tier, outcome.generation, error=error)]

        logger.debug("Synthesized %dpx textures in %.1f ms", outcome.tier, outcome.elapsed * 1000)
        try:
            texture_set = self._commit(outcome.result, now)
        except MemoryError as e:
            outcome.release()
            error = SynthesisError(f"cannot allocate {outcome.tier}px normal map: {e}", outcome.tier)
            self._halt(error)
            return [StageEvent("failed", outcome.tier, outcome.generation, error=error)]

        events = [StageEvent("committed", outcome.tier, outcome.generation, textures=texture_set)]
        if self._tier_index == len(self.settings.tiers) - 1:
            self._state = PipelineState.SETTLED
            logger.info("Texture pipeline for %s settled at %dpx", self.name, outcome.tier)
            events.append(StageEvent("settled", outcome.tier, outcome.generation))
        else:
            self._state = PipelineState.COMMITTED
        return events

    def _commit(self, result: SynthesisResult, now: Optional[float]) -> TextureSet:
        tier = self.current_tier
        previous_normal: Optional[PixelBuffer] = None
        if self._live is not None:
            previous_normal = self._live.normal.buffer

        started = time.perf_counter()
        normal = derive_normal_map(result.height, tier, previous_normal)
        logger.debug("generateNormalMap %dpx: %.1f ms", tier, (time.perf_counter() - started) * 1000)

        texture_set = TextureSet(
            tier=tier,
            height=DynamicTexture("planetHeightMap", result.height),
            specular=DynamicTexture("planetSpecularMap", result.specular),
            diffuse=DynamicTexture("planetDiffuseMap", result.diffuse),
            normal=DynamicTexture("planetBumpMap", normal,
                                  level=self.settings.bump_level(self._tier_index,
                                                                 self.options.roughness)),
        )
        self._material.bind(TextureSlots(
            diffuse=texture_set.diffuse,
            specular=texture_set.specular,
            bump=texture_set.normal,
            tier=tier,
        ))
        self._material.wireframe = False

        superseded, self._live = self._live, texture_set
        if superseded is not None:
            self.scheduler.schedule(superseded, self.settings.texture_grace_delay, now)
        self.history.append(tier)
        logger.info("Committed %dpx textures for %s", tier, self.name)
        return texture_set

    def _halt(self, error: SynthesisError) -> None:
        self._state = PipelineState.HALTED
        live = self._live.tier if self._live is not None else None
        logger.error("Texture synthesis for %s failed: %s (keeping %s)",
                     self.name, error, f"{live}px textures" if live else "untextured material")
