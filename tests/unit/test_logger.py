import json

from config.settings import Settings
from observability import configure_logging, log_event


def test_log_event_writes_json_and_human_lines(tmp_path, capsys):
    log_file = tmp_path / "events.log"
    configure_logging(Settings(_env_file=None, LOG_FILE=str(log_file)))
    try:
        log_event("turn", "session-1", action="ask", cursor=0, notes=["clarify_fallback"])
    finally:
        configure_logging(Settings(_env_file=None, ENABLE_FILE_LOGS=False))

    event = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert event["kind"] == "turn"
    assert event["session_id"] == "session-1"
    assert event["notes"] == ["clarify_fallback"]
    human = (tmp_path / "events-human.log").read_text(encoding="utf-8")
    assert "session=session-1 kind=turn action=ask cursor=0" in human
    assert "session=session-1" in capsys.readouterr().out
