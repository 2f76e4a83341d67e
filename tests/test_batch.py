from __future__ import annotations

import logging
from typing import Dict, List

import numpy as np
import pytest

from pseudo_alpha.batch import BatchOrchestrator, output_id_for
from pseudo_alpha.contracts import BatchState


def _image(_input_id: str) -> np.ndarray:
    img = np.full((16, 16, 3), 255, dtype=np.uint8)
    img[5:11, 5:11] = (0, 0, 0)
    return img


def _loader_failing_on(*bad_ids: str):
    def _load(input_id: str) -> np.ndarray:
        if input_id in bad_ids:
            raise OSError(f"cannot decode {input_id}")
        return _image(input_id)

    return _load


def test_empty_input_list():
    result = BatchOrchestrator(_image).convert_all([])
    assert result.overall_success is False
    assert result.processed_files == []
    assert result.errors == []
    assert result.message


def test_partial_failure_is_isolated():
    orchestrator = BatchOrchestrator(_loader_failing_on("b.jpg"))
    result = orchestrator.convert_all(["a.jpg", "b.jpg"], "white")

    assert result.overall_success is False
    assert len(result.processed_files) == 1
    assert len(result.errors) == 1
    assert result.processed_files[0].input_id == "a.jpg"
    assert result.processed_files[0].output_id == "a.png"
    assert result.errors[0].input_id == "b.jpg"
    assert "b.jpg" in result.errors[0].error
    assert result.errors[0].success is False

    state = orchestrator.snapshot()
    assert state.is_processing is False
    assert state.processed_count == state.total_count == 2
    assert [r.input_id for r in state.results] == ["a.jpg", "b.jpg"]
    assert [r.input_id for r in state.errors] == ["b.jpg"]


def test_all_success():
    result = BatchOrchestrator(_image).convert_all(["x.jpeg", "y.jpg"], "white")
    assert result.overall_success is True
    assert result.errors == []
    assert [r.output_id for r in result.processed_files] == ["x.png", "y.png"]
    assert result.processed_files[0].config_used.target_color == (255, 255, 255)
    assert result.preset == "white"


def test_missing_loader_short_circuits():
    result = BatchOrchestrator(None).convert_all(["a.jpg"])
    assert result.overall_success is False
    assert result.processed_files == []
    assert result.errors == []
    assert "loader" in result.message


def test_missing_processor_short_circuits():
    result = BatchOrchestrator(_image, processor=None).convert_all(["a.jpg"])
    assert result.overall_success is False
    assert "processor" in result.message


def test_truncates_to_max_items(caplog):
    orchestrator = BatchOrchestrator(_image, max_items=2)
    with caplog.at_level(logging.WARNING, logger="pseudo_alpha.batch"):
        result = orchestrator.convert_all(["1.jpg", "2.jpg", "3.jpg"])
    assert [r.input_id for r in result.processed_files] == ["1.jpg", "2.jpg"]
    assert orchestrator.snapshot().total_count == 2
    assert any("exceed" in rec.getMessage() for rec in caplog.records)


def test_max_items_from_environment(monkeypatch):
    monkeypatch.setenv("PSEUDO_ALPHA_MAX_FILES", "1")
    assert BatchOrchestrator(_image).max_items == 1


def test_sequential_progress_is_monotonic():
    seen: List[BatchState] = []
    order: List[str] = []

    def _load(input_id: str) -> np.ndarray:
        order.append(input_id)
        return _image(input_id)

    orchestrator = BatchOrchestrator(_load, on_progress=seen.append)
    orchestrator.convert_all(["a.jpg", "b.jpg", "c.jpg"])

    assert order == ["a.jpg", "b.jpg", "c.jpg"]
    assert [s.processed_count for s in seen] == [1, 2, 3]
    assert all(s.total_count == 3 for s in seen)
    assert all(s.is_processing for s in seen)
    assert [s.current_item for s in seen] == ["a.jpg", "b.jpg", "c.jpg"]
    assert [len(s.results) for s in seen] == [1, 2, 3]


def test_cancel_between_items():
    holder: Dict[str, BatchOrchestrator] = {}

    def _cancel_after_first(state: BatchState) -> None:
        if state.processed_count == 1:
            holder["o"].cancel()

    orchestrator = BatchOrchestrator(_image, on_progress=_cancel_after_first)
    holder["o"] = orchestrator
    result = orchestrator.convert_all(["a.jpg", "b.jpg", "c.jpg"])

    assert result.cancelled is True
    assert result.overall_success is False
    assert len(result.processed_files) == 1
    assert "cancelled" in result.message
    state = orchestrator.snapshot()
    assert state.cancelled is True
    assert len(state.results) == 1

    # a new run starts clean
    again = orchestrator.convert_all(["a.jpg"])
    assert again.cancelled is False
    assert again.overall_success is True


def test_sink_receives_outputs():
    saved: Dict[str, np.ndarray] = {}

    def _sink(output_id: str, rgba: np.ndarray) -> None:
        saved[output_id] = rgba

    BatchOrchestrator(_image, sink=_sink).convert_all(["dir/a.jpg"], "white")
    assert list(saved) == ["dir/a.png"]
    assert saved["dir/a.png"].shape == (16, 16, 4)
    assert saved["dir/a.png"][0, 0, 3] == 0


def test_sink_failure_counts_as_item_failure():
    def _sink(_output_id: str, _rgba: np.ndarray) -> None:
        raise PermissionError("read-only")

    result = BatchOrchestrator(_image, sink=_sink).convert_all(["a.jpg"])
    assert result.errors[0].error == "read-only"


def test_state_is_reset_per_run_and_snapshots_are_copies():
    orchestrator = BatchOrchestrator(_loader_failing_on("bad.jpg"))
    orchestrator.convert_all(["bad.jpg"])
    assert len(orchestrator.snapshot().errors) == 1

    orchestrator.convert_all(["ok.jpg"])
    snap = orchestrator.snapshot()
    assert snap.errors == []
    assert len(snap.results) == 1

    snap.results.clear()
    snap.processed_count = 99
    assert len(orchestrator.snapshot().results) == 1
    assert orchestrator.snapshot().processed_count == 1

    orchestrator.reset()
    assert orchestrator.snapshot() == BatchState()


def test_unknown_preset_rejected():
    with pytest.raises(ValueError):
        BatchOrchestrator(_image).convert_all(["a.jpg"], "purple")


def test_describe():
    assert "No batch" in BatchState().describe()
    running = BatchState(is_processing=True, current_item="a.jpg", processed_count=1, total_count=3)
    assert running.describe() == "Processing a.jpg (1/3)"


@pytest.mark.parametrize(
    "input_id,expected",
    [("a.jpg", "a.png"), ("b.JPEG", "b.png"), ("dir/c.png", "dir/c.png"), ("noext", "noext.png")],
)
def test_output_id_for(input_id, expected):
    assert output_id_for(input_id) == expected
