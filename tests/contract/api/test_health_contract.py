from webdav_gateway.infra.config.settings import settings


class TestHealthContract:
    def test_health_schema(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"status", "uptime", "version"}
        assert data["status"] == "healthy"
        assert data["version"] == settings.APP_VERSION
        assert isinstance(data["uptime"], float)
        assert data["uptime"] >= 0

    def test_health_needs_no_credentials(self, client, dispatcher):
        response = client.get("/health")

        assert response.status_code == 200
        assert "www-authenticate" not in response.headers
        assert dispatcher.calls == []
