from pathlib import Path

from lexicon_store.config import (
    DEFAULT_DB_PATH,
    DEFAULT_PER_PAGE,
    DEFAULT_TIMEOUT,
    MAX_PER_PAGE,
    load_settings,
)


def test_defaults():
    settings = load_settings({})
    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.timeout == DEFAULT_TIMEOUT
    assert settings.per_page == DEFAULT_PER_PAGE


def test_environment_overrides(tmp_path):
    settings = load_settings({
        "LEXICON_STORE_DB": str(tmp_path / "w.db"),
        "LEXICON_STORE_TIMEOUT": "1.5",
        "LEXICON_STORE_PER_PAGE": "20",
    })
    assert settings.db_path == Path(tmp_path / "w.db")
    assert settings.timeout == 1.5
    assert settings.per_page == 20


def test_per_page_is_clamped():
    assert load_settings({"LEXICON_STORE_PER_PAGE": "5000"}).per_page == MAX_PER_PAGE
    assert load_settings({"LEXICON_STORE_PER_PAGE": "0"}).per_page == 1


def test_bad_values_fall_back_to_defaults():
    settings = load_settings({
        "LEXICON_STORE_TIMEOUT": "soon",
        "LEXICON_STORE_PER_PAGE": "many",
    })
    assert settings.timeout == DEFAULT_TIMEOUT
    assert settings.per_page == DEFAULT_PER_PAGE
