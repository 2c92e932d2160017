"""
Label Check Test Configuration and Fixtures

Test conventions:
============================================================

1. No real provider calls:
   - Provider credentials are removed from the environment for every test
   - Provider behaviour is simulated with unittest.mock (Mock / patch.object)

2. Log isolation:
   - JSONL logs are written under tmp_path only

3. Determinism:
   - Heuristic classification is pure; tests may assert on exact pros/cons order
============================================================
"""

import pytest
import sys
from pathlib import Path


# =============================================================================
# Path Setup
# =============================================================================

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


# =============================================================================
# Shared Fixtures
# =============================================================================

PROVIDER_ENV_VARS = (
    "OPENAI_API_KEY",
    "AZURE_OPENAI_API_KEY",
    "LABELCHECK_DISABLE_LLM",
    "LABELCHECK_LLM_CONFIG",
    "LABELCHECK_LOG_DIR",
)


@pytest.fixture(autouse=True)
def clean_provider_env(monkeypatch):
    """Start every test without provider credentials or overrides."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def schema_path(project_root: Path) -> Path:
    """Return the label analysis JSON schema path."""
    return project_root / "llm" / "schemas" / "label_analysis.schema.json"


@pytest.fixture
def isolated_logs_dir(tmp_path: Path) -> Path:
    """Provide an isolated JSONL log directory."""
    logs_dir = tmp_path / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


@pytest.fixture
def provider_config(tmp_path: Path) -> Path:
    """Write a minimal provider config pointing at a fake endpoint."""
    config_path = tmp_path / "llm_providers.yaml"
    config_path.write_text(
        "default_provider: openai\n"
        "providers:\n"
        "  openai:\n"
        "    base_url: https://llm.invalid/v1\n"
        "    model: gpt-4o\n"
        "    auth_env: OPENAI_API_KEY\n"
        "    temperature: 0.2\n"
        "    timeout_seconds: 5\n",
        encoding="utf-8"
    )
    return config_path


# =============================================================================
# Test Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "llm: marks tests that exercise the (mocked) LLM provider path"
    )


# =============================================================================
# Hooks
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their names/paths.
    """
    for item in items:
        if "llm" in item.name.lower():
            item.add_marker(pytest.mark.llm)
        if "test_cli" in item.nodeid:
            item.add_marker(pytest.mark.integration)
