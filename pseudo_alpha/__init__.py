"""Background-color keying: turn a flat backdrop into an alpha channel."""

from .batch import BatchOrchestrator, output_id_for
from .contracts import BatchResult, BatchState, ProcessingConfig, ProcessingResult
from .errors import DependencyMissing, InvalidImage, LoadFailure, LoadTimeout, PseudoAlphaError
from .pipeline import load_and_process, process_image, run_pipeline
from .presets import Preset, Profile, profile_config, resolve_config

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "BatchState",
    "DependencyMissing",
    "InvalidImage",
    "LoadFailure",
    "LoadTimeout",
    "Preset",
    "ProcessingConfig",
    "ProcessingResult",
    "Profile",
    "PseudoAlphaError",
    "load_and_process",
    "output_id_for",
    "process_image",
    "profile_config",
    "resolve_config",
    "run_pipeline",
]
