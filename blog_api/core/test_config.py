# blog_api/core/test_config.py
"""
환경 변수 기반 설정 테스트

사용법: python -m pytest blog_api/core/test_config.py -v
"""
import importlib

from blog_api.core import config


def test_numeric_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv('EXCERPT_LENGTH', '200')
    monkeypatch.setenv('SLUG_MAX_ATTEMPTS', '8')
    try:
        reloaded = importlib.reload(config)
        assert reloaded.Config.EXCERPT_LENGTH == 200
        assert reloaded.Config.SLUG_MAX_ATTEMPTS == 8
        assert reloaded.config_by_name['testing'].EXCERPT_LENGTH == 200
    finally:
        monkeypatch.delenv('EXCERPT_LENGTH')
        monkeypatch.delenv('SLUG_MAX_ATTEMPTS')
        importlib.reload(config)


def test_numeric_settings_defaults(monkeypatch):
    monkeypatch.delenv('EXCERPT_LENGTH', raising=False)
    monkeypatch.delenv('SLUG_MAX_ATTEMPTS', raising=False)
    reloaded = importlib.reload(config)
    assert reloaded.Config.EXCERPT_LENGTH == 150
    assert reloaded.Config.SLUG_MAX_ATTEMPTS == 5
