"""Incremental generation: priority segments first, the rest in the background."""

import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from loguru import logger

from ..config import IncrementalConfig
from ..models.document import ParsedDocument
from ..models.script import GenerationOptions, PlayableScript, Scene, ScriptMetadata
from ..models.segment import (
    GenerationProgress,
    GenerationTask,
    Segment,
    SegmentEventType,
    SegmentProgress,
    SegmentStatus,
    TaskStatus,
    WaitingDialogue,
)
from ..models.text import MultiLanguageContent
from .events import SegmentEventBus, SegmentEventListener
from .segmentation import SegmentationStrategy
from .waiting import WaitingDialoguePool

SceneGenerator = Callable[[Segment, ParsedDocument, GenerationOptions], list[Scene]]


def _dialogue_count(scenes: list[Scene]) -> int:
    return sum(len(scene.lines) for scene in scenes)


def _percent(part: int, whole: int) -> int:
    """Percentage rounded half up."""
    if whole <= 0:
        return 0
    return min(100, int(part * 100 / whole + 0.5))


class SegmentContentStore:
    """Produced scenes and background tasks for one generation run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._scenes: dict[str, list[Scene]] = {}
        self._tasks: dict[str, GenerationTask] = {}

    def put_scenes(self, segment_id: str, scenes: list[Scene]) -> None:
        with self._lock:
            self._scenes[segment_id] = list(scenes)

    def get_scenes(self, segment_id: str) -> Optional[list[Scene]]:
        with self._lock:
            scenes = self._scenes.get(segment_id)
            return list(scenes) if scenes is not None else None

    def has_scenes(self, segment_id: str) -> bool:
        with self._lock:
            return segment_id in self._scenes

    def all_scenes(self) -> list[Scene]:
        with self._lock:
            ordered = []
            for segment_id in sorted(self._scenes):
                ordered.extend(self._scenes[segment_id])
            return ordered

    def generated_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._scenes)

    def add_task(self, task: GenerationTask) -> None:
        with self._lock:
            self._tasks[task.segment_id] = task

    def get_task(self, segment_id: str) -> Optional[GenerationTask]:
        with self._lock:
            return self._tasks.get(segment_id)


@dataclass
class IncrementalGenerationResult:
    immediate_script: PlayableScript
    background_tasks: list[GenerationTask]
    game_ready_callback: Callable[[], Optional[threading.Thread]]
    initial_progress: GenerationProgress
    segments: list[Segment] = field(default_factory=list)


class IncrementalGenerator:
    """
    Drives segment generation for one document run.

    Priority segments are generated synchronously by
    ``generate_initial_content``. The remaining segments are queued and only
    start once the caller invokes the returned ``game_ready_callback``; they
    then run one at a time on a background thread.
    """

    def __init__(
        self,
        scene_generator: SceneGenerator,
        config: Optional[IncrementalConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.scene_generator = scene_generator
        self.config = config or IncrementalConfig()
        self.strategy = SegmentationStrategy(self.config)
        self.store = SegmentContentStore()
        self.events = SegmentEventBus()
        self.waiting = WaitingDialoguePool(rng=rng)
        self.segments: list[Segment] = []
        self._sleep = sleep
        self._thread: Optional[threading.Thread] = None
        self._ready_lock = threading.Lock()
        self._game_ready = False
        self._run_started = False

        if self.config.max_concurrent_tasks > 1:
            logger.debug(
                f"max_concurrent_tasks={self.config.max_concurrent_tasks} is reserved, "
                "background segments are generated one at a time"
            )

    def subscribe(self, listener: SegmentEventListener) -> Callable[[], None]:
        return self.events.subscribe(listener)

    def generate_initial_content(
        self,
        document: ParsedDocument,
        options: Optional[GenerationOptions] = None,
    ) -> IncrementalGenerationResult:
        """
        Generate every must-generate-first segment and queue the rest.

        A failure in any priority segment is not retried: ``segment_failed``
        is emitted and the generator's exception propagates. A generator
        serves one run; calling this twice raises ``RuntimeError``.
        """
        with self._ready_lock:
            if self._run_started:
                raise RuntimeError(
                    "generate_initial_content already ran on this generator; "
                    "create a new IncrementalGenerator per document run"
                )
            self._run_started = True

        options = options or GenerationOptions()
        segments = self.strategy.segment_document(document)
        self.segments = segments
        priority = self.strategy.priority_segments(segments)
        background = self.strategy.background_segments(segments)

        logger.info(
            f"Generating {len(priority)} priority segments before playback, "
            f"{len(background)} queued for background"
        )

        immediate_scenes: list[Scene] = []
        for segment in priority:
            self.events.publish(SegmentEventType.STARTED, segment.id)
            try:
                scenes = self._generate_segment(segment, document, options)
            except Exception as e:
                logger.error(f"Priority segment {segment.id} failed: {e}")
                self.events.publish(SegmentEventType.FAILED, segment.id, {"error": str(e)})
                raise

            immediate_scenes.extend(scenes)
            self.store.put_scenes(segment.id, scenes)
            self.events.publish(
                SegmentEventType.COMPLETED,
                segment.id,
                {"dialogue_count": _dialogue_count(scenes), "scenes": scenes},
            )

        tasks = [
            GenerationTask(
                segment_id=segment.id,
                document=document,
                options=options,
                estimated_time=self.strategy.estimate_generation_time(segment),
            )
            for segment in background
        ]
        for task in tasks:
            self.store.add_task(task)

        script = self.build_script(immediate_scenes, document, options, priority)
        progress = self.calculate_progress()

        def game_ready_callback() -> Optional[threading.Thread]:
            return self._on_game_ready(tasks, segments)

        logger.success(
            f"Playable prefix ready: {len(immediate_scenes)} scenes, "
            f"{progress.overall_progress}% of estimated content"
        )
        return IncrementalGenerationResult(
            immediate_script=script,
            background_tasks=tasks,
            game_ready_callback=game_ready_callback,
            initial_progress=progress,
            segments=segments,
        )

    def _generate_segment(
        self, segment: Segment, document: ParsedDocument, options: GenerationOptions
    ) -> list[Scene]:
        return list(self.scene_generator(segment, document, options))

    def _on_game_ready(
        self, tasks: list[GenerationTask], segments: list[Segment]
    ) -> Optional[threading.Thread]:
        with self._ready_lock:
            if self._game_ready:
                logger.warning("Game ready callback already invoked, ignoring")
                return self._thread
            self._game_ready = True

        self.events.publish(SegmentEventType.GAME_READY, "all")

        if not self.config.enable_background_generation:
            logger.info("Background generation disabled")
            return None
        if not tasks:
            return None

        self._thread = threading.Thread(
            target=self.run_background,
            args=(tasks, segments),
            name="segment-background",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def run_background(self, tasks: list[GenerationTask], segments: list[Segment]) -> None:
        """Generate queued segments strictly one at a time."""
        by_id = {segment.id: segment for segment in segments}
        logger.info(f"Background generation started for {len(tasks)} segments")

        for task in tasks:
            try:
                segment = by_id.get(task.segment_id)
                if segment is None:
                    task.status = TaskStatus.FAILED
                    task.last_error = f"Unknown segment: {task.segment_id}"
                    logger.warning(task.last_error)
                    continue
                self._run_task(task, segment)
            except Exception:
                task.status = TaskStatus.FAILED
                logger.exception(f"Background generation failed for {task.segment_id}")

            # Throttle load on the external generator
            self._delay(self.config.background_task_delay)

        logger.info("Background generation finished")

    def _run_task(self, task: GenerationTask, segment: Segment) -> None:
        task.status = TaskStatus.RUNNING
        self.events.publish(SegmentEventType.STARTED, task.segment_id)

        max_attempts = self.config.max_retry_attempts if self.config.retry_failed_segments else 1
        scenes: Optional[list[Scene]] = None

        while task.attempts < max_attempts and scenes is None:
            task.attempts += 1
            try:
                scenes = self._generate_segment(segment, task.document, task.options)
            except Exception as e:
                task.last_error = str(e) or e.__class__.__name__
                logger.warning(
                    f"Segment {task.segment_id} attempt {task.attempts}/{max_attempts} failed: {e}"
                )
                if task.attempts < max_attempts:
                    # Linear backoff
                    self._delay(self.config.background_task_delay * task.attempts)

        if scenes is not None:
            self.store.put_scenes(task.segment_id, scenes)
            task.status = TaskStatus.COMPLETED
            logger.info(f"Segment {task.segment_id} completed after {task.attempts} attempt(s)")
            self.events.publish(
                SegmentEventType.COMPLETED,
                task.segment_id,
                {"dialogue_count": _dialogue_count(scenes), "scenes": scenes, "attempt": task.attempts},
            )
        else:
            task.status = TaskStatus.FAILED
            logger.error(f"Segment {task.segment_id} failed after {task.attempts} attempt(s)")
            self.events.publish(
                SegmentEventType.FAILED,
                task.segment_id,
                {"error": task.last_error or "Unknown error", "attempt": task.attempts},
            )

    def _delay(self, ms: int) -> None:
        self._sleep(ms / 1000)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Join the background thread. Returns False if it is still running."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def build_script(
        self,
        scenes: list[Scene],
        document: ParsedDocument,
        options: GenerationOptions,
        segments: list[Segment],
    ) -> PlayableScript:
        paper_title = document.metadata.title
        metadata = ScriptMetadata(
            title=MultiLanguageContent(
                zh=f"{paper_title} - 游戏脚本",
                jp=f"{paper_title} - ゲームスクリプト",
                en=f"{paper_title} - Game Script",
            ),
            paper_title=MultiLanguageContent.same(paper_title),
            primary_language=options.primary_language,
            characters=list(options.characters),
            total_duration=self.strategy.estimate_total_time(segments),
        )
        return PlayableScript(metadata=metadata, scenes=list(scenes))

    def calculate_progress(self, segments: Optional[list[Segment]] = None) -> GenerationProgress:
        """
        Snapshot of the run, recomputed from the content store.

        Overall progress is weighted by estimated units, so finishing a small
        segment moves the bar less than finishing a large one.
        """
        segments = self.segments if segments is None else segments
        entries = []
        completed_units = 0
        remaining_time = 0

        for segment in segments:
            scenes = self.store.get_scenes(segment.id)
            task = self.store.get_task(segment.id)

            if scenes is not None:
                status = SegmentStatus.COMPLETED
                completed_units += segment.estimated_units
            elif task is not None and task.status == TaskStatus.RUNNING:
                status = SegmentStatus.GENERATING
            elif task is not None and task.status == TaskStatus.FAILED:
                status = SegmentStatus.FAILED
            else:
                status = SegmentStatus.PENDING

            if scenes is None:
                remaining_time += self.strategy.estimate_generation_time(segment)

            entries.append(
                SegmentProgress(
                    segment_id=segment.id,
                    status=status,
                    progress={SegmentStatus.COMPLETED: 100, SegmentStatus.GENERATING: 50}.get(status, 0),
                    message=self.progress_message(status, segment),
                    error=task.last_error if status == SegmentStatus.FAILED and task else None,
                    scenes=scenes,
                )
            )

        total_units = sum(s.estimated_units for s in segments)
        overall = _percent(completed_units, total_units)

        return GenerationProgress(
            total_segments=len(segments),
            completed_segments=sum(1 for e in entries if e.status == SegmentStatus.COMPLETED),
            overall_progress=overall,
            can_start_game=overall >= self.config.min_start_percentage,
            segments=entries,
            estimated_time_remaining=remaining_time,
        )

    @staticmethod
    def progress_message(status: SegmentStatus, segment: Segment) -> MultiLanguageContent:
        title = segment.title
        if status == SegmentStatus.COMPLETED:
            return MultiLanguageContent(
                zh=f"{title.zh} 已完成", jp=f"{title.jp} 完了", en=f"{title.en} completed"
            )
        if status == SegmentStatus.GENERATING:
            return MultiLanguageContent(
                zh=f"正在生成 {title.zh}...", jp=f"{title.jp} を生成中...", en=f"Generating {title.en}..."
            )
        if status == SegmentStatus.FAILED:
            return MultiLanguageContent(
                zh=f"{title.zh} 生成失败", jp=f"{title.jp} 生成失敗", en=f"{title.en} generation failed"
            )
        return MultiLanguageContent(
            zh=f"等待生成 {title.zh}", jp=f"{title.jp} 生成待ち", en=f"Waiting to generate {title.en}"
        )

    def is_segment_available(self, segment_id: str) -> bool:
        return self.store.has_scenes(segment_id)

    def get_segment_scenes(self, segment_id: str) -> Optional[list[Scene]]:
        return self.store.get_scenes(segment_id)

    def get_all_generated_scenes(self) -> list[Scene]:
        """All produced scenes, ordered by segment id."""
        return self.store.all_scenes()

    def get_waiting_dialogue(self, context: str = "generating") -> Optional[WaitingDialogue]:
        if not self.config.enable_waiting_dialogues:
            return None
        return self.waiting.pick(context)

    def add_waiting_dialogue(self, dialogue: WaitingDialogue) -> None:
        self.waiting.add(dialogue)
