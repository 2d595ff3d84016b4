from beyleague.config.settings import load_settings, settings
from beyleague.logging.setup import sensitive_data_filter
from beyleague.models.enums import WinnerSide


def test_invalid_log_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    assert load_settings().log_level == "INFO"


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("UNRESOLVED_WINNER_SIDE", "B")

    loaded = load_settings()

    assert loaded.log_level == "DEBUG"
    assert loaded.unresolved_winner_side == WinnerSide.B


def test_filter_masks_secrets(monkeypatch):
    monkeypatch.setattr(settings, "supabase_key", "anon-key-123456789")
    record = {
        "message": "connecting with anon-key-123456789",
        "extra": {"service_key": "abcdefghijkl", "rows": 3},
    }

    assert sensitive_data_filter(record) is True
    assert "anon-key-123456789" not in record["message"]
    assert record["extra"] == {"service_key": "abcd****ijkl", "rows": 3}
