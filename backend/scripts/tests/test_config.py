"""
Tests for settings and the normalize_pdf command-line script.

Usage:
    pytest backend/scripts/tests/test_config.py
"""
from ta_assistant.core.config import Settings
from ta_assistant.ingestion.document_processor import NormalizerConfig
from ta_assistant.ingestion.errors import PageRecognitionError
from ta_assistant.models.document import NormalizedDocument

from scripts import normalize_pdf as cli


# ==================== Settings ====================

def test_settings_create_data_directories(tmp_path):
    config = Settings(DATA_DIR=tmp_path / "data")

    assert config.SUBMISSIONS_DIR == tmp_path / "data" / "submissions"
    assert config.SUBMISSIONS_DIR.is_dir()


def test_ocr_model_defaults_to_chat_model(tmp_path):
    config = Settings(DATA_DIR=tmp_path, LLM_PROVIDER="ollama", OLLAMA_MODEL="llava", OCR_MODEL=None)
    assert config.ocr_model == "llava"

    config = Settings(DATA_DIR=tmp_path, OCR_MODEL="gpt-4o")
    assert config.ocr_model == "gpt-4o"


def test_validate_required_settings(tmp_path):
    assert "OPENAI_API_KEY is required" in Settings(
        DATA_DIR=tmp_path, LLM_PROVIDER="openai", OPENAI_API_KEY=""
    ).validate_required_settings()

    assert Settings(
        DATA_DIR=tmp_path, LLM_PROVIDER="anthropic"
    ).validate_required_settings() == ["Unsupported LLM_PROVIDER: anthropic"]

    assert "QUESTIONS_MIN must not exceed QUESTIONS_MAX" in Settings(
        DATA_DIR=tmp_path, OPENAI_API_KEY="sk", QUESTIONS_MIN=15, QUESTIONS_MAX=10
    ).validate_required_settings()


def test_normalizer_config_from_settings(tmp_path):
    config = NormalizerConfig.from_settings(Settings(
        DATA_DIR=tmp_path,
        INGEST_TEXT_THRESHOLD=100,
        INGEST_MAX_PAGES=5,
        OCR_CONCURRENCY=2,
        OCR_MODEL="vision-model",
        INGEST_TIMEOUT_SECONDS=60,
    ))

    assert config.text_threshold == 100
    assert config.max_pages == 5
    assert config.ocr_concurrency == 2
    assert config.model == "vision-model"
    assert config.timeout_seconds == 60


# ==================== CLI ====================

def test_cli_prints_document(monkeypatch, tmp_path, capsys):
    seen = {}

    async def fake_normalize(path, config=None):
        seen["config"] = config
        return NormalizedDocument(text="# Página 1\nolá", pages_count=1, ocr_used=False)

    monkeypatch.setattr(cli, "normalize_pdf", fake_normalize)

    code = cli.main([str(tmp_path / "a.pdf"), "--max-pages", "3", "--concurrency", "2"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Strategy: direct" in out
    assert "# Página 1\nolá" in out
    assert seen["config"].max_pages == 3
    assert seen["config"].ocr_concurrency == 2


def test_cli_quiet_omits_text(monkeypatch, tmp_path, capsys):
    async def fake_normalize(path, config=None):
        return NormalizedDocument(text="# Página 1\nsegredo", pages_count=1, ocr_used=True)

    monkeypatch.setattr(cli, "normalize_pdf", fake_normalize)

    assert cli.main([str(tmp_path / "a.pdf"), "--quiet"]) == 0
    out = capsys.readouterr().out
    assert "Strategy: recognition" in out
    assert "segredo" not in out


def test_cli_exit_codes(monkeypatch, tmp_path):
    async def missing(path, config=None):
        raise FileNotFoundError(f"File not found: {path}")

    async def failing(path, config=None):
        raise PageRecognitionError(2, RuntimeError("boom"))

    monkeypatch.setattr(cli, "normalize_pdf", missing)
    assert cli.main([str(tmp_path / "none.pdf")]) == 2

    monkeypatch.setattr(cli, "normalize_pdf", failing)
    assert cli.main([str(tmp_path / "bad.pdf")]) == 1
