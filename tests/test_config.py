import pytest

from subtrans.config import SubTransConfig, parse_sanitizer_names
from subtrans.translate import GoogleTranslator, LLMTranslator, OllamaTranslator
from subtrans.translate.factory import get_translation_engine, sanitizer_names_for
from subtrans.translate.sanitizers import strip_latin


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in [
        "SUBTRANS_ENGINE",
        "SUBTRANS_MODEL",
        "SUBTRANS_ENDPOINT",
        "SUBTRANS_MAX_BLOCK_SIZE",
        "SUBTRANS_MAX_RETRIES",
        "SUBTRANS_RETRY_DELAY",
        "SUBTRANS_CONCURRENCY",
        "SUBTRANS_REQUEST_TIMEOUT",
        "SUBTRANS_SANITIZERS",
        "SUBTRANS_TARGET_LANG",
    ]:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = SubTransConfig.from_env()

    assert config.engine == "ollama"
    assert config.endpoint == "http://localhost:11434"
    assert config.max_block_size == 20
    assert config.max_retries == 3
    assert config.retry_delay == 1.0
    assert config.concurrency == 2
    assert config.request_timeout == 30.0
    assert config.sanitizers is None


def test_env_values_and_explicit_override(monkeypatch):
    monkeypatch.setenv("SUBTRANS_ENGINE", "google")
    monkeypatch.setenv("SUBTRANS_CONCURRENCY", "4")
    monkeypatch.setenv("SUBTRANS_MAX_BLOCK_SIZE", "not-a-number")
    monkeypatch.setenv("SUBTRANS_SANITIZERS", "control_chars, latin")

    config = SubTransConfig.from_env(concurrency=1, target_lang="ja")

    assert config.engine == "google"
    assert config.endpoint == "https://translate.googleapis.com"
    assert config.concurrency == 1
    assert config.max_block_size == 20
    assert config.target_lang == "ja"
    assert config.sanitizers == ("control_chars", "latin")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_block_size": 0},
        {"max_retries": 0},
        {"concurrency": 0},
        {"retry_delay": -1.0},
        {"request_timeout": 0},
        {"engine": "babelfish"},
    ],
)
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        SubTransConfig(**kwargs)


def test_parse_sanitizer_names():
    assert parse_sanitizer_names(None) is None
    assert parse_sanitizer_names(" , ") is None
    assert parse_sanitizer_names("Think_Tags,latin") == ("think_tags", "latin")


def test_factory_builds_each_engine():
    ollama = get_translation_engine(SubTransConfig(engine="ollama", request_timeout=5))
    google = get_translation_engine(SubTransConfig(engine="google", endpoint="https://gt.example"))
    llm = get_translation_engine(
        SubTransConfig(engine="llm", endpoint="https://llm.example/v1/chat/completions", model="m")
    )

    assert isinstance(ollama, OllamaTranslator) and ollama.timeout == 5
    assert isinstance(google, GoogleTranslator)
    assert isinstance(llm, LLMTranslator)


def test_llm_engine_requires_endpoint():
    with pytest.raises(ValueError):
        get_translation_engine(SubTransConfig(engine="llm", endpoint="", model=""))


def test_latin_sanitizer_is_opt_in():
    assert "latin" not in sanitizer_names_for(SubTransConfig(engine="ollama"))

    engine = get_translation_engine(SubTransConfig(engine="ollama", sanitizers=("latin",)))
    assert engine.sanitizers == [strip_latin]
