from __future__ import annotations

import logging
import os
import threading
import time
from typing import Callable, Iterable, List, Optional, Union

import numpy as np

from .color import Color
from .config import get_inter_item_delay_s, get_max_batch_items
from .contracts import BatchResult, BatchState, ProcessingConfig, ProcessingResult
from .pipeline import Loader, load_and_process
from .presets import Preset, parse_preset, resolve_config

logger = logging.getLogger(__name__)

# Host capability: persist a finished RGBA buffer under its output id.
Sink = Callable[[str, np.ndarray], None]
Processor = Callable[[str, Loader, ProcessingConfig], np.ndarray]
ProgressCallback = Callable[[BatchState], None]


def output_id_for(input_id: str) -> str:
    """a/b/photo.jpeg -> a/b/photo.png"""
    root, _ext = os.path.splitext(input_id)
    return f"{root}.png"


class BatchOrchestrator:
    """
    Applies the single-image pipeline to an ordered list of inputs, one at a
    time, isolating per-item failures.

    State is owned by the orchestrator and mutated only inside `convert_all`.
    Other threads read it through `snapshot()`, which returns a deep copy.
    """

    def __init__(
        self,
        loader: Optional[Loader],
        *,
        sink: Optional[Sink] = None,
        processor: Optional[Processor] = load_and_process,
        max_items: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        inter_item_delay_s: Optional[float] = None,
    ):
        self.loader = loader
        self.sink = sink
        self.processor = processor
        self.max_items = get_max_batch_items() if max_items is None else int(max_items)
        if self.max_items <= 0:
            raise ValueError(f"max_items must be positive, got {self.max_items}")
        self.on_progress = on_progress
        self.inter_item_delay_s = get_inter_item_delay_s() if inter_item_delay_s is None else inter_item_delay_s

        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._state = BatchState()

    def snapshot(self) -> BatchState:
        with self._lock:
            return self._state.model_copy(deep=True)

    def reset(self) -> None:
        with self._lock:
            self._state = BatchState()

    def cancel(self) -> None:
        """Stop before the next item. The item in flight always finishes."""
        self._cancel.set()

    def _update(self, **changes) -> None:
        with self._lock:
            for key, value in changes.items():
                setattr(self._state, key, value)

    def _record(self, result: ProcessingResult, processed_count: int) -> None:
        with self._lock:
            self._state.results.append(result)
            if not result.success:
                self._state.errors.append(result)
            self._state.processed_count = processed_count

    def _process_one(self, input_id: str, config: ProcessingConfig) -> ProcessingResult:
        output_id = output_id_for(input_id)
        try:
            rgba = self.processor(input_id, self.loader, config)
            if self.sink is not None:
                self.sink(output_id, rgba)
        except Exception as e:  # noqa: BLE001 - one bad image must not abort the batch
            logger.error("Failed: %s (%s: %s)", input_id, type(e).__name__, e)
            return ProcessingResult(
                input_id=input_id,
                output_id=None,
                success=False,
                error=str(e) or type(e).__name__,
                config_used=config,
            )
        logger.info("Done: %s -> %s", input_id, output_id)
        return ProcessingResult(input_id=input_id, output_id=output_id, success=True, config_used=config)

    def convert_all(
        self,
        inputs: Iterable[str],
        preset: Union[str, Preset] = Preset.AUTO,
        *,
        threshold: Optional[float] = None,
        smooth: Optional[bool] = None,
        feather_radius: Optional[float] = None,
        target_color: Optional[Color] = None,
        timeout_s: Optional[float] = None,
    ) -> BatchResult:
        preset = parse_preset(preset)
        config = resolve_config(
            preset,
            threshold=threshold,
            smooth=smooth,
            feather_radius=feather_radius,
            target_color=target_color,
            timeout_s=timeout_s,
        )

        self._cancel.clear()
        self.reset()

        if self.loader is None or self.processor is None:
            missing = "image loader" if self.loader is None else "image processor"
            msg = f"Batch not started: no {missing} configured"
            logger.error(msg)
            return BatchResult(overall_success=False, message=msg, preset=preset.value, config=config)

        items: List[str] = list(inputs)
        if not items:
            msg = "No input images found"
            logger.warning(msg)
            return BatchResult(overall_success=False, message=msg, preset=preset.value, config=config)

        if len(items) > self.max_items:
            logger.warning(
                "%d inputs exceed the limit of %d; only the first %d will be processed",
                len(items),
                self.max_items,
                self.max_items,
            )
            items = items[: self.max_items]

        total = len(items)
        self._update(is_processing=True, total_count=total)
        logger.info("Batch start: %d item(s), preset=%s, config=%s", total, preset.value, config.model_dump())

        succeeded: List[ProcessingResult] = []
        failed: List[ProcessingResult] = []
        cancelled = False
        try:
            for i, input_id in enumerate(items, start=1):
                if self._cancel.is_set():
                    cancelled = True
                    logger.warning("Batch cancelled after %d/%d item(s)", i - 1, total)
                    break

                self._update(current_item=input_id)
                logger.info("Processing (%d/%d): %s", i, total, input_id)

                result = self._process_one(input_id, config)
                (succeeded if result.success else failed).append(result)
                self._record(result, processed_count=i)

                if self.on_progress is not None:
                    self.on_progress(self.snapshot())
                if self.inter_item_delay_s > 0 and i < total:
                    time.sleep(self.inter_item_delay_s)
        finally:
            self._update(is_processing=False, current_item=None, cancelled=cancelled)

        message = f"Finished: {len(succeeded)} converted, {len(failed)} failed"
        if cancelled:
            message += f", {total - len(succeeded) - len(failed)} skipped (cancelled)"
        logger.info(message)

        return BatchResult(
            overall_success=not failed and not cancelled,
            message=message,
            processed_files=succeeded,
            errors=failed,
            cancelled=cancelled,
            preset=preset.value,
            config=config,
        )

    def convert_with_preset(self, inputs: Iterable[str], preset: Union[str, Preset], **overrides) -> BatchResult:
        return self.convert_all(inputs, preset, **overrides)
