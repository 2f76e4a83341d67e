from __future__ import annotations

from typing import Annotated, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_FEATHER_RADIUS, DEFAULT_SMOOTH, DEFAULT_THRESHOLD, DEFAULT_TIMEOUT_S

Channel = Annotated[int, Field(ge=0, le=255)]


class ProcessingConfig(BaseModel):
    """Immutable per-invocation settings. `threshold` is a Lab ΔE distance."""

    model_config = ConfigDict(frozen=True)

    threshold: float = Field(default=DEFAULT_THRESHOLD, ge=0)
    smooth: bool = DEFAULT_SMOOTH
    feather_radius: float = Field(default=DEFAULT_FEATHER_RADIUS, ge=0)
    target_color: Optional[Tuple[Channel, Channel, Channel]] = None
    timeout_s: float = Field(default=DEFAULT_TIMEOUT_S, gt=0)


class ProcessingResult(BaseModel):
    input_id: str
    output_id: Optional[str] = None
    success: bool
    error: Optional[str] = None
    config_used: Optional[ProcessingConfig] = None


class BatchState(BaseModel):
    is_processing: bool = False
    current_item: Optional[str] = None
    processed_count: int = 0
    total_count: int = 0
    cancelled: bool = False
    # Every attempted item, successful or not, in processing order.
    results: List[ProcessingResult] = Field(default_factory=list)
    errors: List[ProcessingResult] = Field(default_factory=list)

    def describe(self) -> str:
        if self.is_processing:
            return f"Processing {self.current_item} ({self.processed_count}/{self.total_count})"
        if self.results:
            ok = len(self.results) - len(self.errors)
            return f"Idle. Last batch: {ok} converted, {len(self.errors)} failed"
        return "Idle. No batch has run"


class BatchResult(BaseModel):
    overall_success: bool
    message: str
    processed_files: List[ProcessingResult] = Field(default_factory=list)
    errors: List[ProcessingResult] = Field(default_factory=list)
    cancelled: bool = False
    preset: Optional[str] = None
    config: Optional[ProcessingConfig] = None
