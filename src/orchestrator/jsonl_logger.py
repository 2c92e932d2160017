"""
Label Check Engine - JSONL Structured Logger

Implements structured logging in JSONL format for operational monitoring.
Logs are written to logs/ directory with daily rotation.

Features:
- JSONL format (one JSON object per line)
- Daily log file rotation (logs/YYYY-MM-DD.jsonl)
- Atomic writes (.tmp -> rename())
- One "analysis" event per dispatch: source, input kind, findings, error
- Label text is never written; only its length and sha256
"""

import hashlib
import json
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from threading import Lock


def _utc_today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class JSONLLogger:
    """
    Structured logger that writes JSONL format logs.

    Features:
    - Daily log file rotation
    - Atomic writes (tmp -> rename)
    - Thread-safe logging
    """

    def __init__(self, logs_dir: Path):
        """
        Initialize JSONL logger.

        Args:
            logs_dir: Base directory for log files (e.g., ./logs)
        """
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._current_log_file: Optional[Path] = None
        self._current_date: Optional[str] = None

    def _get_log_file_path(self, date: Optional[str] = None) -> Path:
        """
        Get log file path for a given date.

        Args:
            date: Date string (YYYY-MM-DD), or None for today

        Returns:
            Path to log file
        """
        if date is None:
            date = _utc_today()

        return self.logs_dir / f"{date}.jsonl"

    def _ensure_log_file(self) -> Path:
        today = _utc_today()

        # Rotate on date change
        if self._current_date != today:
            self._current_date = today
            self._current_log_file = self._get_log_file_path(today)

        return self._current_log_file

    def log(self, event: Dict[str, Any]):
        """
        Write a log event to JSONL file.

        Args:
            event: Dictionary containing log event data

        Raises:
            RuntimeError: If the entry could not be written
        """
        with self._lock:
            log_file = self._ensure_log_file()

            if "timestamp" not in event:
                event["timestamp"] = datetime.now(timezone.utc).isoformat()

            tmp_file = log_file.with_suffix(".jsonl.tmp")

            try:
                existing_content = ""
                if log_file.exists():
                    with open(log_file, "r", encoding="utf-8") as f:
                        existing_content = f.read()

                with open(tmp_file, "w", encoding="utf-8") as f:
                    if existing_content:
                        f.write(existing_content)
                    f.write(json.dumps(event, ensure_ascii=False) + "\n")

                tmp_file.replace(log_file)

            except (OSError, ValueError) as e:
                if tmp_file.exists():
                    tmp_file.unlink()
                raise RuntimeError(f"Failed to write log entry: {e}") from e

    def log_analysis(self,
                     source: str,
                     input_kind: str,
                     result: Dict[str, Any],
                     text: Optional[str] = None,
                     error: Optional[str] = None,
                     defaulted_fields: Optional[List[str]] = None):
        """
        Log one dispatch outcome.

        Args:
            source: HEURISTIC / LLM / FALLBACK
            input_kind: text / image / empty
            result: ClassificationResult wire dict
            text: Label text (only length and hash are recorded)
            error: Diagnostic message when the provider failed
            defaulted_fields: Provider fields that were defaulted by normalization
        """
        event = {
            "event_type": "analysis",
            "source": source,
            "input_kind": input_kind,
            "text_length": len(text) if text else 0,
            "has_gluten": result.get("hasGluten"),
            "gluten_origin": result.get("glutenOrigin"),
            "has_lactose": result.get("hasLactose"),
            "cross_contam": result.get("crossContam"),
            "score": result.get("score"),
        }

        if text:
            event["text_sha256"] = hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()
        if error:
            event["error"] = error
        if defaulted_fields:
            event["defaulted_fields"] = defaulted_fields

        self.log(event)

    def log_error(self,
                  error_type: str,
                  error_message: str,
                  metadata: Optional[Dict[str, Any]] = None):
        """
        Log error event.

        Args:
            error_type: Error type (e.g. "timeout", "json_parse_error")
            error_message: Error message
            metadata: Additional metadata
        """
        event = {
            "event_type": "error",
            "error_type": error_type,
            "error_message": error_message
        }

        if metadata:
            event["metadata"] = metadata

        self.log(event)
