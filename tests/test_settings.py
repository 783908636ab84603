# tests/test_settings.py
from docbrief.api import services


class TestNotifications:

    def test_defaults(self, client):
        data = client.get("/settings").json()

        assert data["notifications"] == {
            "upload_complete": True,
            "brief_generated": True,
            "weekly_digest": False,
            "system_updates": True,
        }

    def test_partial_update(self, client):
        response = client.put("/settings/notifications", json={"weekly_digest": True})

        assert response.status_code == 200
        notifications = response.json()["notifications"]
        assert notifications["weekly_digest"] is True
        assert notifications["upload_complete"] is True

    def test_update_is_persisted(self, client):
        client.put("/settings/notifications", json={"system_updates": False})

        services.settings_registry.load()

        assert client.get("/settings").json()["notifications"]["system_updates"] is False


class TestIntegrations:

    def test_all_disconnected_by_default(self, client):
        integrations = client.get("/settings").json()["integrations"]

        assert set(integrations) == {"notion", "slack", "github"}
        assert all(not i["connected"] for i in integrations.values())
        assert all(i["status"] == "disconnected" for i in integrations.values())

    def test_connect_and_disconnect(self, client):
        connected = client.post("/settings/integrations/slack/connect").json()

        assert connected["integrations"]["slack"] == {"connected": True, "status": "connected"}
        assert connected["integrations"]["notion"]["connected"] is False

        disconnected = client.post("/settings/integrations/slack/disconnect").json()

        assert disconnected["integrations"]["slack"]["connected"] is False

    def test_unknown_integration(self, client):
        response = client.post("/settings/integrations/dropbox/connect")

        assert response.status_code == 404
