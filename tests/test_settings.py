import json

from smart_er.models import SystemSetting


def test_sound_settings_defaults(client):
    resp = client.get("/api/sound-settings")
    assert resp.status_code == 200
    settings = resp.json()["settings"]
    assert settings["googleTtsEnabled"] is True
    assert settings["voiceLang"] == "th-TH"
    assert settings["pageInterval"] == 15


def test_saving_sound_settings_requires_login(client):
    resp = client.post("/api/sound-settings", json={"speechRate": 1.5})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_partial_sound_settings_update(auth_client, db_session):
    resp = auth_client.post("/api/sound-settings", json={"speechRate": 1.5, "voiceName": "Kanya"})
    assert resp.status_code == 200
    assert resp.json()["settings"]["speechRate"] == 1.5

    settings = auth_client.get("/api/sound-settings").json()["settings"]
    assert settings["speechRate"] == 1.5
    assert settings["voiceName"] == "Kanya"
    assert settings["pageInterval"] == 15

    stored = db_session.query(SystemSetting).filter_by(setting_key="sound_settings").one()
    assert json.loads(stored.setting_value)["voiceName"] == "Kanya"


def test_sound_settings_out_of_range(auth_client):
    resp = auth_client.post("/api/sound-settings", json={"pageInterval": 0})
    assert resp.status_code == 400


def test_corrupt_stored_settings_fall_back_to_defaults(client, db_session):
    db_session.add(SystemSetting(setting_key="sound_settings", setting_value="{not json"))
    db_session.commit()

    settings = client.get("/api/sound-settings").json()["settings"]
    assert settings["speechRate"] == 1


def test_theme_defaults_to_teal(client):
    assert client.get("/api/theme").json() == {"success": True, "theme": "teal"}


def test_set_theme(auth_client):
    resp = auth_client.post("/api/theme", json={"theme": "rose"})
    assert resp.status_code == 200
    assert auth_client.get("/api/theme").json()["theme"] == "rose"


def test_invalid_theme(auth_client):
    resp = auth_client.post("/api/theme", json={"theme": "neon"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid theme"
    assert auth_client.get("/api/theme").json()["theme"] == "teal"
