from fastapi.testclient import TestClient

from workshop_reports import main


def test_startup_prepares_database_once(monkeypatch):
    calls = []
    monkeypatch.setattr(main, "prepare_database", lambda: calls.append("prepared"))
    app = main.create_app()
    with TestClient(app) as client:
        assert calls == ["prepared"]
        assert client.get("/healthz").json() == {"status": "ok"}
    assert calls == ["prepared"]


def test_prepare_database_is_dev_only(monkeypatch):
    seeded = []
    monkeypatch.setattr(main.settings, "ENV", "test")
    monkeypatch.setattr(main.settings, "SEED_DEMO", True)
    monkeypatch.setattr(main, "seed_demo", lambda: seeded.append(True))
    main.prepare_database()
    assert seeded == []
