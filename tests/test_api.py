"""
Tests for the composition API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from tangle_map.api.main import app

SMALL = {"width": 400, "height": 300, "padding": 40, "cluster_count": 2}


class TestServiceEndpoints:
    """Test the informational endpoints."""

    def setup_method(self):
        """Set up test client."""
        self.client = TestClient(app)

    def test_root(self):
        response = self.client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Tangle Map API"
        assert data["status"] == "running"

    def test_health(self):
        response = self.client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_layers_in_paint_order(self):
        """Test the /layers endpoint lists every layer sorted by z."""
        response = self.client.get("/layers")
        assert response.status_code == 200
        layers = response.json()

        assert len(layers) == 12
        z_values = [layer["z_index"] for layer in layers]
        assert z_values == sorted(z_values)
        assert layers[0]["name"] == "cores"
        for field in ["name", "z_index", "enabled", "opacity", "requires"]:
            assert field in layers[0]


class TestCompositionEndpoints:
    """Test generation and rendering."""

    def setup_method(self):
        """Set up test client."""
        self.client = TestClient(app)

    def test_generate(self):
        response = self.client.post("/compositions/generate", json={**SMALL, "seed": 42})
        assert response.status_code == 200
        data = response.json()

        assert data["seed"] == 42
        assert len(data["clusters"]) == 2
        assert "grid" in data["layers"]
        assert data["warnings"] == []
        assert data["call_count"] > 0

    def test_generate_is_deterministic(self):
        first = self.client.post("/compositions/generate", json={**SMALL, "seed": 9}).json()
        second = self.client.post("/compositions/generate", json={**SMALL, "seed": 9}).json()
        assert first == second

    def test_disabled_layers_keep_data(self):
        """Test hidden layers are still generated and reported as disabled."""
        full = self.client.post("/compositions/generate", json={**SMALL, "seed": 5}).json()
        hidden = self.client.post(
            "/compositions/generate",
            json={**SMALL, "seed": 5, "disabled_layers": ["grid", "flow"]},
        ).json()

        assert hidden["layers"]["grid"]["enabled"] is False
        assert hidden["layers"]["grid"]["data"] == full["layers"]["grid"]["data"]
        assert hidden["layers"]["nodes"]["data"] == full["layers"]["nodes"]["data"]

    def test_unknown_disabled_layer(self):
        response = self.client.post(
            "/compositions/generate", json={**SMALL, "disabled_layers": ["clouds"]}
        )
        assert response.status_code == 400
        assert "clouds" in response.json()["detail"]

    def test_unknown_layer_in_order(self):
        response = self.client.post(
            "/compositions/generate", json={**SMALL, "layer_order": ["grid", "clouds"]}
        )
        assert response.status_code == 400

    def test_custom_order_reports_warning(self):
        response = self.client.post(
            "/compositions/generate", json={**SMALL, "layer_order": ["rectMasks"]}
        )
        assert response.status_code == 200
        assert any("inconsistency" in w for w in response.json()["warnings"])

    @pytest.mark.parametrize("field,value", [("cluster_count", 10), ("width", 50), ("padding", -1)])
    def test_invalid_params(self, field, value):
        response = self.client.post("/compositions/generate", json={**SMALL, field: value})
        assert response.status_code == 422

    def test_render_png(self):
        response = self.client.post("/compositions/render", json={**SMALL, "seed": 3})
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")
