"""
Test JSONL Structured Logger

Tests for JSONL structured logging functionality.
- Daily log file naming
- One JSON object per line, appended in order
- Analysis events never contain raw label text
"""

import pytest
import json
import hashlib
import threading
from pathlib import Path
from datetime import datetime, timezone
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from orchestrator.jsonl_logger import JSONLLogger


def _today_file(logs_dir: Path) -> Path:
    return logs_dir / f"{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.jsonl"


def _read_lines(logs_dir: Path):
    with open(_today_file(logs_dir), "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f]


class TestJSONLLogger:
    """Test JSONL logger functionality."""

    def test_log_file_creation(self, isolated_logs_dir):
        """Log directory and daily file are created."""
        logger = JSONLLogger(isolated_logs_dir)

        logger.log({"event_type": "test", "message": "test message"})

        assert _today_file(isolated_logs_dir).exists()
        assert not _today_file(isolated_logs_dir).with_suffix(".jsonl.tmp").exists()

    def test_log_entry_format(self, isolated_logs_dir):
        """Entries are valid JSON with a timestamp."""
        logger = JSONLLogger(isolated_logs_dir)

        logger.log({"event_type": "test", "count": 42})

        lines = _read_lines(isolated_logs_dir)
        assert len(lines) == 1
        assert lines[0]["event_type"] == "test"
        assert lines[0]["count"] == 42
        assert "timestamp" in lines[0]

    def test_existing_timestamp_kept(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)

        logger.log({"event_type": "test", "timestamp": "2026-01-01T00:00:00"})

        assert _read_lines(isolated_logs_dir)[0]["timestamp"] == "2026-01-01T00:00:00"

    def test_entries_appended_in_order(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)

        for i in range(5):
            logger.log({"event_type": "test", "seq": i})

        assert [line["seq"] for line in _read_lines(isolated_logs_dir)] == [0, 1, 2, 3, 4]

    def test_thread_safety(self, isolated_logs_dir):
        """Concurrent writers do not lose entries."""
        logger = JSONLLogger(isolated_logs_dir)

        threads = [
            threading.Thread(target=logger.log, args=({"event_type": "test", "seq": i},))
            for i in range(20)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(line["seq"] for line in _read_lines(isolated_logs_dir)) == list(range(20))

    def test_non_ascii_preserved(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)

        logger.log({"event_type": "test", "message": "contaminación"})

        raw = _today_file(isolated_logs_dir).read_text(encoding="utf-8")
        assert "contaminación" in raw


class TestAnalysisEvents:

    RESULT = {
        "hasGluten": True,
        "glutenOrigin": "trigo/wheat",
        "hasLactose": False,
        "crossContam": False,
        "pros": [],
        "cons": ["Contiene gluten"],
        "score": 7,
        "summary": "Este producto CONTIENE gluten (origen: trigo/wheat).",
    }

    def test_log_analysis_fields(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)
        text = "Harina de trigo"

        logger.log_analysis(source="HEURISTIC", input_kind="text", result=self.RESULT, text=text)

        event = _read_lines(isolated_logs_dir)[0]
        assert event["event_type"] == "analysis"
        assert event["source"] == "HEURISTIC"
        assert event["input_kind"] == "text"
        assert event["text_length"] == len(text)
        assert event["text_sha256"] == hashlib.sha256(text.encode("utf-8")).hexdigest()
        assert event["gluten_origin"] == "trigo/wheat"
        assert event["score"] == 7
        assert "error" not in event
        assert text not in json.dumps(event)

    def test_log_analysis_with_error(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)

        logger.log_analysis(
            source="FALLBACK",
            input_kind="image",
            result=self.RESULT,
            error="timeout: Request timeout",
            defaulted_fields=["score"]
        )

        event = _read_lines(isolated_logs_dir)[0]
        assert event["error"] == "timeout: Request timeout"
        assert event["defaulted_fields"] == ["score"]
        assert event["text_length"] == 0
        assert "text_sha256" not in event

    def test_log_error(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)

        logger.log_error("json_parse_error", "Failed to parse JSON", metadata={"provider": "openai"})

        event = _read_lines(isolated_logs_dir)[0]
        assert event["event_type"] == "error"
        assert event["error_type"] == "json_parse_error"
        assert event["metadata"] == {"provider": "openai"}

    def test_write_failure_raises_runtime_error(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)
        # A directory where the log file should be makes the rename fail
        _today_file(isolated_logs_dir).mkdir()

        with pytest.raises(RuntimeError):
            logger.log({"event_type": "test"})

    def test_undecodable_day_file_raises_runtime_error(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)
        _today_file(isolated_logs_dir).write_bytes(b"\xff\xfe not utf8\n")

        with pytest.raises(RuntimeError):
            logger.log({"event_type": "test"})

        assert not _today_file(isolated_logs_dir).with_suffix(".jsonl.tmp").exists()

    def test_surrogate_text_hashed(self, isolated_logs_dir):
        logger = JSONLLogger(isolated_logs_dir)
        text = "trigo \udcff"

        logger.log_analysis(source="HEURISTIC", input_kind="text", result={}, text=text)

        event = _read_lines(isolated_logs_dir)[0]
        assert event["text_sha256"] == hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()
