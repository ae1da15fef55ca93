import pytest

from app.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_runtime_schema_bootstrap_creates_every_table():
    bootstrap.ensure_runtime_schema_compatibility()
    bootstrap._assert_required_columns()


def test_runtime_schema_bootstrap_creates_notification_payload(engine):
    bootstrap.Base.metadata.create_all(bind=engine)
    columns = {item["name"] for item in bootstrap.inspect(engine).get_columns("notifications")}
    assert bootstrap.REQUIRED_COLUMNS["notifications"] <= columns
