from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
from dotenv import load_dotenv
from tqdm import tqdm

from .batch import BatchOrchestrator
from .color import parse_color
from .config import IMAGE_EXTENSIONS, JPEG_EXTENSIONS, get_max_batch_items
from .contracts import BatchState, ProcessingConfig
from .io import iter_images, load_image_rgba, save_rgba_png
from .pipeline import Loader, load_image_with_timeout, run_pipeline
from .presets import Preset, Profile, profile_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Key out a flat background color into a transparent PNG.")
    parser.add_argument("--input", required=True, type=str, help="Input image or directory of images.")
    parser.add_argument("--output", required=True, type=str, help="Output directory for RGBA PNGs.")
    parser.add_argument(
        "--preset",
        default=Preset.AUTO.value,
        choices=[p.value for p in Preset],
        help="Background preset; 'auto' detects the color from the image corners.",
    )
    parser.add_argument(
        "--profile",
        default=None,
        choices=[p.value for p in Profile],
        help="Quality profile supplying threshold/smooth/feather defaults.",
    )
    parser.add_argument("--color", default=None, type=str, help="Explicit background color: '#rrggbb' or 'r,g,b'.")
    parser.add_argument("--threshold", default=None, type=float, help="Lab ΔE tolerance.")
    parser.add_argument("--smooth", default=None, action=argparse.BooleanOptionalAction, help="Bilateral denoise.")
    parser.add_argument("--feather", default=None, type=float, help="Alpha feather radius in pixels (0 disables).")
    parser.add_argument("--timeout", default=None, type=float, help="Per-image load timeout in seconds.")
    parser.add_argument("--max-files", default=None, type=int, help="Maximum number of images per batch.")
    parser.add_argument("--all-images", action="store_true", help="Accept PNG/WebP/BMP/TIFF, not only JPEG.")
    parser.add_argument("--log-level", default="WARNING", type=str, help="Logging level (DEBUG, INFO, ...).")
    return parser


def _collect_inputs(input_path: Path, all_images: bool) -> tuple[Path, List[str]]:
    if input_path.is_file():
        return input_path.parent, [input_path.name]
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")
    exts = IMAGE_EXTENSIONS if all_images else JPEG_EXTENSIONS
    ids = [p.relative_to(input_path).as_posix() for p in iter_images(input_path, exts)]
    return input_path, ids


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.max_files is not None and args.max_files <= 0:
        parser.error(f"--max-files must be positive, got {args.max_files}")
    try:
        input_root, inputs = _collect_inputs(Path(args.input), args.all_images)
    except FileNotFoundError as e:
        parser.error(str(e))
    output_dir = Path(args.output)

    threshold, smooth, feather = args.threshold, args.smooth, args.feather
    if args.profile is not None:
        base = profile_config(args.profile)
        threshold = base.threshold if threshold is None else threshold
        smooth = base.smooth if smooth is None else smooth
        feather = base.feather_radius if feather is None else feather
    target_color = parse_color(args.color) if args.color else None

    def _load(input_id: str) -> np.ndarray:
        return load_image_rgba(str(input_root / input_id))

    def _save(output_id: str, rgba: np.ndarray) -> None:
        save_rgba_png(rgba, str(output_dir / output_id))

    def _process(input_id: str, loader: Loader, config: ProcessingConfig) -> np.ndarray:
        buffer = load_image_with_timeout(input_id, loader, config.timeout_s)
        report = run_pipeline(buffer, config)
        t = report.timings
        # Simple per-image timing log (kept minimal and deterministic).
        tqdm.write(
            f"{input_id}: bg=RGB{report.background} transparent={report.transparent_ratio * 100:.1f}% "
            f"total={t.total_s:.3f}s (detect={t.detect_s:.3f}s classify={t.classify_s:.3f}s "
            f"denoise={t.denoise_s:.3f}s feather={t.feather_s:.3f}s comp={t.composite_s:.3f}s)"
        )
        return report.rgba

    max_items = args.max_files if args.max_files is not None else get_max_batch_items()
    total = min(len(inputs), max_items)
    with tqdm(total=total, desc="Keying", unit="img") as pbar:

        def _on_progress(state: BatchState) -> None:
            pbar.update(1)
            pbar.set_postfix_str(state.current_item or "")

        orchestrator = BatchOrchestrator(
            _load,
            sink=_save,
            processor=_process,
            max_items=max_items,
            on_progress=_on_progress,
        )
        t0 = time.perf_counter()
        result = orchestrator.convert_all(
            inputs,
            args.preset,
            threshold=threshold,
            smooth=smooth,
            feather_radius=feather,
            target_color=target_color,
            timeout_s=args.timeout,
        )
        t1 = time.perf_counter()

    print(
        f"{result.message}\n"
        f"- preset:  {result.preset}\n"
        f"- elapsed_s: {t1 - t0:.2f}\n"
        f"- output:  {output_dir.resolve()}"
    )
    for err in result.errors:
        print(f"  ! {err.input_id}: {err.error}")
    return 0 if result.overall_success else 1


if __name__ == "__main__":
    raise SystemExit(main())
