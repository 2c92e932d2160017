"""
LLM Client for Label Check Engine

Provides LLM-based label classification (text or photo) through an
OpenAI-compatible chat completions endpoint.

One request per call: there is no retry loop and no backoff. Any transport
error, HTTP error or unparseable response is raised as an LLMError subclass
and the caller (orchestrator.hybrid_dispatcher) falls back to the heuristic
classifier.

The parsed response is returned as an untyped value. It is NOT trusted:
orchestrator.response_normalizer materializes it into a ClassificationResult.

Environment Variables:
- OPENAI_API_KEY (or the variable named by providers.<name>.auth_env): provider credential
- LABELCHECK_DISABLE_LLM=1: Completely disable LLM calls. Any call raises LLMDisabledError.
- LABELCHECK_LLM_CONFIG: Alternative path to llm_providers.yaml
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml
import jsonschema
import requests

from llm.prompt_templates import PROMPT_VERSION, build_messages

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class LLMError(Exception):
    """
    Base class for provider failures.

    error_type is a short machine-readable code (e.g. "rate_limit_error");
    str(error) is "<error_type>: <message>".
    """

    def __init__(self, error_type: str, message: str):
        super().__init__(f"{error_type}: {message}")
        self.error_type = error_type


class LLMRequestError(LLMError):
    """Provider unreachable, timed out, or answered with an HTTP error."""


class LLMResponseError(LLMError):
    """Provider answered but the content is not usable JSON."""


class LLMDisabledError(LLMError):
    """
    Raised when LLM calls are disabled via LABELCHECK_DISABLE_LLM=1.

    This ensures tests fail fast if they accidentally try to use the provider.
    """

    def __init__(self, method_name: str):
        super().__init__(
            "llm_disabled",
            f"LLM call attempted ({method_name}) but LABELCHECK_DISABLE_LLM=1 is set"
        )


def _check_llm_disabled() -> bool:
    """
    Check if LLM is disabled via environment variable.

    Returns:
        True if LABELCHECK_DISABLE_LLM is 1/true/yes
    """
    return os.getenv("LABELCHECK_DISABLE_LLM", "").lower() in ("1", "true", "yes")


def default_config_path() -> Path:
    env_path = os.getenv("LABELCHECK_LLM_CONFIG")
    if env_path:
        return Path(env_path)
    return Path(__file__).parent.parent.parent / "config" / "llm_providers.yaml"


def default_schema_path() -> Path:
    return Path(__file__).parent.parent.parent / "llm" / "schemas" / "label_analysis.schema.json"


def strip_code_fences(content: str) -> str:
    """
    Remove a Markdown code block around JSON content, if present.

    "```json\\n{...}\\n```" -> "{...}"
    """
    content = content.strip()
    if not content.startswith("```"):
        return content

    json_lines = []
    in_block = False
    for line in content.split("\n"):
        if line.strip().startswith("```"):
            in_block = not in_block
            continue
        if in_block:
            json_lines.append(line)
    return "\n".join(json_lines)


class LLMClient:
    """
    LLM client for food-label classification.

    Features:
    - Text or image (base64) input
    - OpenAI and Azure OpenAI chat completions
    - Single attempt per call (failures go to the heuristic fallback)
    - JSON Schema diagnostics for provider output
    """

    def __init__(self,
                 config_path: Optional[str] = None,
                 schema_path: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize LLM client.

        Args:
            config_path: Path to llm_providers.yaml (default: config/llm_providers.yaml)
            schema_path: Path to label_analysis.schema.json (default: llm/schemas/label_analysis.schema.json)
            session: Optional requests session (tests inject a mock)

        Raises:
            FileNotFoundError: If config or schema file not found
            ValueError: If the config is not a mapping of provider settings
        """
        self.config_path = Path(config_path) if config_path else default_config_path()
        self.schema_path = Path(schema_path) if schema_path else default_schema_path()

        if not self.config_path.exists():
            raise FileNotFoundError(f"LLM config not found: {self.config_path}")
        if not self.schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {self.schema_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self.config = yaml.safe_load(f) or {}

        with open(self.schema_path, 'r', encoding='utf-8') as f:
            self.schema = json.load(f)

        if not isinstance(self.config, dict):
            raise ValueError(f"LLM config must be a mapping: {self.config_path}")

        self.providers = self.config.get("providers", {})
        self.provider_name = self.config.get("default_provider", "openai")
        if not isinstance(self.providers, dict) or not isinstance(self.provider_name, str):
            raise ValueError(f"LLM config \"providers\" must map names to settings: {self.config_path}")

        self.provider_config = self.providers.get(self.provider_name) or {}
        if not isinstance(self.provider_config, dict):
            raise ValueError(f"LLM provider \"{self.provider_name}\" settings must be a mapping: {self.config_path}")
        self.prompt_version = PROMPT_VERSION

        # No retry adapter: one request per call
        self.session = session or requests.Session()

        self._validator = jsonschema.Draft202012Validator(self.schema)

    @property
    def model(self) -> str:
        return self.provider_config.get("model", "gpt-4o")

    @property
    def auth_env(self) -> str:
        return self.provider_config.get("auth_env", "OPENAI_API_KEY")

    def _get_api_key(self) -> Optional[str]:
        return os.getenv(self.auth_env) or None

    def is_configured(self) -> bool:
        """True if a credential is available and LLM calls are not disabled."""
        if _check_llm_disabled():
            return False
        return self._get_api_key() is not None

    def _call_openai_api(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Call OpenAI API (or Azure OpenAI).

        Args:
            messages: Chat messages (system + user)

        Returns:
            API response dict

        Raises:
            LLMRequestError: On missing key, transport failure or HTTP error
            LLMResponseError: If the body is not JSON
        """
        base_url = self.provider_config.get("base_url", "https://api.openai.com/v1").rstrip("/")
        api_key = self._get_api_key()

        if not api_key:
            raise LLMRequestError("invalid_api_key", f"API key not found in environment variable: {self.auth_env}")

        url = f"{base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        }

        # Azure OpenAI specific headers
        if "azure" in self.provider_name.lower():
            api_version = self.provider_config.get("api_version", "2024-10-01-preview")
            headers = {"api-key": api_key, "Content-Type": "application/json"}
            url = f"{base_url}/openai/deployments/{self.model}/chat/completions?api-version={api_version}"

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.provider_config.get("temperature", 0.2),
            "max_tokens": self.provider_config.get("max_tokens", 800)
        }

        if self.provider_config.get("structured_output", False):
            payload["response_format"] = {"type": "json_object"}

        timeout = self.provider_config.get("timeout_seconds", 60)
        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise LLMRequestError("timeout", f"Request timeout: {e}") from e
        except requests.exceptions.RequestException as e:
            raise LLMRequestError("network_error", str(e)) from e

        if response.status_code == 429:
            raise LLMRequestError("rate_limit_error", "Rate limit exceeded")
        elif response.status_code in (401, 403):
            raise LLMRequestError("invalid_api_key", "Invalid API key or authentication error")
        elif response.status_code >= 500:
            raise LLMRequestError("server_error", f"Server error {response.status_code}")
        elif not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            error = error_data.get("error", {}) if isinstance(error_data, dict) else {}
            raise LLMRequestError(
                error.get("type") or "invalid_request_error",
                error.get("message") or f"HTTP {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise LLMResponseError("invalid_response", f"Response body is not JSON: {e}") from e

    def analyze_label(self,
                      text: Optional[str] = None,
                      image_base64: Optional[str] = None,
                      image_mime_type: str = "image/jpeg") -> Any:
        """
        Classify one label with the provider.

        Args:
            text: Label text
            image_base64: Base64 photo of the label (takes precedence over text)
            image_mime_type: MIME type used for the data URL

        Returns:
            Parsed JSON content as returned by the provider (untrusted, any type)

        Raises:
            LLMDisabledError: If LABELCHECK_DISABLE_LLM=1 is set
            LLMRequestError: On transport / HTTP failure
            LLMResponseError: On empty or non-JSON content
            ValueError: If neither text nor image is given
        """
        if _check_llm_disabled():
            raise LLMDisabledError("analyze_label")

        messages = build_messages(
            text=text,
            image_base64=image_base64,
            image_mime_type=image_mime_type,
            schema=self.schema
        )

        logger.debug(f"Sending label to {self.provider_name} ({self.model}), image={bool(image_base64)}")
        response = self._call_openai_api(messages)

        choices = response.get("choices") if isinstance(response, dict) else None
        if not choices:
            raise LLMResponseError("invalid_response", "No choices in response")

        message = choices[0].get("message") or {}
        content = message.get("content") or ""
        if not isinstance(content, str) or not content.strip():
            raise LLMResponseError("invalid_response", "Empty content")

        try:
            return json.loads(strip_code_fences(content))
        except json.JSONDecodeError as e:
            raise LLMResponseError("json_parse_error", f"Failed to parse JSON: {e}") from e

    def validate_result(self, result: Any) -> List[str]:
        """
        Validate a result against the JSON schema.

        Args:
            result: Parsed or normalized result

        Returns:
            List of validation error messages (empty if valid)
        """
        return [error.message for error in self._validator.iter_errors(result)]

    def get_stats(self) -> Dict[str, Any]:
        """Get client configuration summary (no secrets)."""
        return {
            "provider": self.provider_name,
            "model": self.model,
            "auth_env": self.auth_env,
            "configured": self.is_configured(),
            "llm_disabled": _check_llm_disabled(),
            "prompt_version": self.prompt_version,
        }
