"""
Tests for retrieval settings and the settings store.
"""

from __future__ import annotations

import threading

import pytest

from knowledge_engine.rag import RetrievalSettings, SettingsStore


def test_defaults():
    settings = SettingsStore().get_settings()
    assert settings == RetrievalSettings(
        threshold=0.6, min_threshold=0.35, max_results=5, max_excerpts=3, temperature=0.7
    )


def test_get_settings_returns_copy():
    store = SettingsStore()
    snapshot = store.get_settings()
    snapshot.threshold = 0.99
    assert store.get_settings().threshold == 0.6


def test_update_applies_valid_fields():
    store = SettingsStore()
    updated = store.update_settings(threshold=0.5, max_results=8, temperature=1.5)
    assert updated.threshold == 0.5
    assert updated.max_results == 8
    assert updated.temperature == 1.5
    assert store.get_settings() == updated


@pytest.mark.parametrize(
    "changes",
    [
        {"threshold": 0.95},
        {"threshold": 0.05},
        {"max_results": 0},
        {"max_results": 11},
        {"max_results": 2.5},
        {"max_excerpts": 9},
        {"temperature": -0.1},
        {"min_threshold": 0.7},
        {"threshold": True},
        {"threshold": "0.5"},
        {"unknown": 1},
    ],
)
def test_update_ignores_invalid_fields(changes, caplog):
    store = SettingsStore()
    updated = store.update_settings(**changes)
    assert updated == RetrievalSettings()
    assert "Ignoring invalid retrieval setting" in caplog.text


def test_update_mixes_valid_and_invalid():
    store = SettingsStore()
    updated = store.update_settings(threshold=0.4, max_excerpts=20)
    assert updated.threshold == 0.4
    assert updated.max_excerpts == 3


def test_reset_restores_builtin_defaults():
    store = SettingsStore(RetrievalSettings(threshold=0.7))
    store.update_settings(threshold=0.3, max_results=2)
    reset = store.reset_settings()
    assert reset == RetrievalSettings()
    assert store.get_settings().threshold == 0.6


def test_reset_ignores_environment(monkeypatch):
    monkeypatch.setenv("RAG_THRESHOLD", "0.55")
    monkeypatch.setenv("RAG_MAX_RESULTS", "7")
    store = SettingsStore.from_env()
    assert store.get_settings().max_results == 7
    reset = store.reset_settings()
    assert reset.threshold == 0.6
    assert reset.max_results == 5


def test_from_env(monkeypatch):
    monkeypatch.setenv("RAG_THRESHOLD", "0.55")
    monkeypatch.setenv("RAG_MAX_RESULTS", "7")
    monkeypatch.setenv("RAG_MAX_EXCERPTS", "not-a-number")
    monkeypatch.delenv("RAG_TEMPERATURE", raising=False)
    monkeypatch.setenv("RAG_MIN_THRESHOLD", "")
    settings = SettingsStore.from_env().get_settings()
    assert settings.threshold == 0.55
    assert settings.max_results == 7
    assert settings.max_excerpts == 3
    assert settings.temperature == 0.7
    assert settings.min_threshold == 0.35


def test_concurrent_updates_are_consistent():
    store = SettingsStore()

    def worker(value: int) -> None:
        for _ in range(50):
            store.update_settings(max_results=value)
            assert store.get_settings().max_results in (3, 9)

    threads = [threading.Thread(target=worker, args=(v,)) for v in (3, 9)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.get_settings().max_results in (3, 9)
