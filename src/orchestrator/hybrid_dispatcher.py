"""
Label Check Engine - Hybrid Dispatcher

Decides per request whether a label is classified by the LLM provider or by
the heuristic classifier, and always returns a complete ClassificationResult.

Decision policy:
1. Provider not configured (no config, no key, or LABELCHECK_DISABLE_LLM=1)
   -> heuristic over text ("" when only an image was supplied)
2. Provider configured but no text and no image -> heuristic over ""
3. Provider configured -> one request (image wins over text), response
   normalized field by field
4. Any provider failure (transport, HTTP, non-JSON, non-object)
   -> heuristic over text (or ""), with a diagnostic error string

Nothing raised inside the dispatch reaches the caller.
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union
import yaml

from classifiers.label_classifier import ClassificationResult, LabelClassifier
from llm.client import LLMClient, LLMError
from normalize.label_normalizer import is_blank
from orchestrator.jsonl_logger import JSONLLogger
from orchestrator.response_normalizer import normalize_provider_response_with_report

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

SOURCE_HEURISTIC = "HEURISTIC"
SOURCE_LLM = "LLM"
SOURCE_FALLBACK = "FALLBACK"

ImageInput = Union[bytes, bytearray, str]


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of one dispatch plus where it came from."""
    result: ClassificationResult
    source: str
    error: Optional[str] = None
    defaulted_fields: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Wire dict; carries "error" only on fallback."""
        data = self.result.to_dict()
        if self.error:
            data["error"] = self.error
        return data


def encode_image(image: Optional[Any]) -> Optional[str]:
    """
    Turn an image reference into a base64 string.

    bytes are base64-encoded, strings are assumed to already be base64 or a
    data URL. Anything else is ignored.
    """
    if image is None:
        return None
    if isinstance(image, (bytes, bytearray)):
        return base64.b64encode(bytes(image)).decode("ascii") if image else None
    if isinstance(image, str):
        return image.strip() or None
    logger.warning(f"Ignoring unsupported image reference of type {type(image).__name__}")
    return None


def _describe_error(error: Exception) -> str:
    if isinstance(error, LLMError):
        return str(error)
    return f"{type(error).__name__}: {error}"


class HybridDispatcher:
    """
    Routes label classification between the LLM provider and the heuristic classifier.

    Holds configuration and collaborators only; no per-request state, so one
    instance may serve concurrent requests.
    """

    def __init__(self,
                 classifier: Optional[LabelClassifier] = None,
                 llm_client: Optional[LLMClient] = None,
                 jsonl_logger: Optional[JSONLLogger] = None,
                 config_path: Optional[str] = None,
                 use_llm: bool = True):
        """
        Initialize dispatcher.

        Args:
            classifier: Heuristic classifier (default: LabelClassifier())
            llm_client: Provider client (default: built from config_path if use_llm)
            jsonl_logger: Optional JSONL logger for dispatch audit events
            config_path: Path to llm_providers.yaml for the default client
            use_llm: False forces heuristic-only mode
        """
        self.classifier = classifier or LabelClassifier()
        self.jsonl_logger = jsonl_logger
        self.llm_client = llm_client

        if self.llm_client is None and use_llm:
            try:
                self.llm_client = LLMClient(config_path=config_path)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"LLM provider unavailable, using heuristic classifier only: {e}")
                self.llm_client = None

        if not use_llm:
            self.llm_client = None

    def provider_configured(self) -> bool:
        return self.llm_client is not None and self.llm_client.is_configured()

    def resolve(self,
                text: Optional[str] = None,
                image: Optional[ImageInput] = None,
                image_mime_type: str = "image/jpeg") -> ClassificationResult:
        """
        Classify one label.

        Args:
            text: Label text (already OCR'd or typed)
            image: Label photo as bytes or base64 string

        Returns:
            ClassificationResult (never raises)
        """
        return self.resolve_detailed(text=text, image=image, image_mime_type=image_mime_type).result

    def resolve_detailed(self,
                         text: Optional[str] = None,
                         image: Optional[ImageInput] = None,
                         image_mime_type: str = "image/jpeg") -> DispatchOutcome:
        """
        Classify one label and report which path produced the result.

        Returns:
            DispatchOutcome with source HEURISTIC, LLM or FALLBACK
        """
        fallback_text = text if isinstance(text, str) else ""
        image_base64 = encode_image(image)
        has_text = not is_blank(fallback_text)

        if not self.provider_configured():
            outcome = DispatchOutcome(self.classifier.classify(fallback_text), SOURCE_HEURISTIC)
        elif not has_text and not image_base64:
            outcome = DispatchOutcome(self.classifier.classify(""), SOURCE_HEURISTIC)
        else:
            outcome = self._resolve_with_provider(fallback_text if has_text else None,
                                                  image_base64, image_mime_type)

        self._record(outcome, fallback_text, image_base64)
        return outcome

    def _resolve_with_provider(self,
                               text: Optional[str],
                               image_base64: Optional[str],
                               image_mime_type: str) -> DispatchOutcome:
        try:
            raw = self.llm_client.analyze_label(
                text=text,
                image_base64=image_base64,
                image_mime_type=image_mime_type
            )
            result, defaulted = normalize_provider_response_with_report(raw)
        except Exception as e:
            error = _describe_error(e)
            logger.warning(f"LLM classification failed, falling back to heuristic: {error}")
            return DispatchOutcome(self.classifier.classify(text or ""), SOURCE_FALLBACK, error=error)

        if defaulted:
            logger.info(f"LLM response fields defaulted: {', '.join(defaulted)}")
        return DispatchOutcome(result, SOURCE_LLM, defaulted_fields=defaulted)

    def _record(self, outcome: DispatchOutcome, text: str, image_base64: Optional[str]):
        if self.jsonl_logger is None:
            return

        if image_base64:
            input_kind = "image"
        elif not is_blank(text):
            input_kind = "text"
        else:
            input_kind = "empty"

        try:
            self.jsonl_logger.log_analysis(
                source=outcome.source,
                input_kind=input_kind,
                result=outcome.result.to_dict(),
                text=text,
                error=outcome.error,
                defaulted_fields=outcome.defaulted_fields
            )
        except Exception as e:
            logger.warning(f"Could not write analysis log entry: {e}")
