"""Tests for the composition pipeline."""

import json

import pytest

from tangle_map.config import CompositionParams
from tangle_map.core.clusters import ClusterField
from tangle_map.core.pipeline import CompositionPipeline, LayerConfigurationError
from tangle_map.core.random_stream import RandomStream
from tangle_map.layers import DEFAULT_GENERATION_ORDER
from tangle_map.render.canvas import BACKGROUND_COLOR, RecordingCanvas

PARAMS = CompositionParams(width=1200, height=800, padding=80, cluster_count=3)


class StubLayer:
    """Minimal layer that records what the pipeline hands it."""

    def __init__(self, name, z_index, requires=(), draws=1, fail=False, painted=None):
        self.name = name
        self.z_index = z_index
        self.requires = requires
        self.draws = draws
        self.fail = fail
        self.painted = painted if painted is not None else []

    def generate_data(self, params):
        if self.fail:
            raise RuntimeError(f"{self.name} exploded")
        return {
            "values": [params.random.next() for _ in range(self.draws)],
            "prior": sorted(params.prior),
            "has_grid": params.grid is not None,
        }

    def render(self, canvas, data, params):
        self.painted.append((self.name, params.opacity))


def default_pipeline(seed=42):
    return CompositionPipeline(RandomStream(seed), ClusterField(1200, 800, 80))


def stub_pipeline(layers, seed=42):
    return CompositionPipeline(RandomStream(seed), ClusterField(1200, 800, 80), layers=layers)


def exported_data(pipeline):
    return {name: entry["data"] for name, entry in pipeline.export_layer_data().items()}


class TestDeterminism:
    """Test seed reproducibility."""

    def test_same_seed_same_composition(self):
        a = default_pipeline(42)
        b = default_pipeline(42)
        a.generate_all_data(PARAMS)
        b.generate_all_data(PARAMS)
        assert exported_data(a) == exported_data(b)
        assert a.random.call_count == b.random.call_count

    def test_different_seeds_differ(self):
        a = default_pipeline(1)
        b = default_pipeline(2)
        a.generate_all_data(PARAMS)
        b.generate_all_data(PARAMS)
        assert exported_data(a) != exported_data(b)

    def test_visibility_does_not_change_data(self):
        """Test hiding layers leaves every layer's data untouched."""
        full = default_pipeline(7)
        hidden = default_pipeline(7)
        hidden.set_layer_states({"grid": False, "infrastructure": False, "plotAreas": False})

        full.render_all(RecordingCanvas(), PARAMS)
        hidden.render_all(RecordingCanvas(), PARAMS)
        assert exported_data(full) == exported_data(hidden)

    def test_every_default_layer_generated(self):
        pipeline = default_pipeline()
        store = pipeline.generate_all_data(PARAMS)
        assert list(store) == DEFAULT_GENERATION_ORDER

    def test_export_is_json_serializable(self):
        pipeline = default_pipeline()
        pipeline.generate_all_data(PARAMS)
        decoded = json.loads(json.dumps(pipeline.export_layer_data()))
        assert decoded["grid"]["z_index"] == -20
        assert decoded["nodes"]["enabled"] is True


class TestGenerationPass:
    """Test how the pass feeds layers."""

    def test_generation_order_is_registration_order(self):
        layers = [StubLayer("grid", 0), StubLayer("b", -5), StubLayer("a", 5)]
        pipeline = stub_pipeline(layers)
        assert pipeline.generation_order == ["grid", "b", "a"]
        assert list(pipeline.generate_all_data(PARAMS)) == ["grid", "b", "a"]

    def test_prior_outputs_follow_requires(self):
        layers = [
            StubLayer("grid", 0),
            StubLayer("roads", 1),
            StubLayer("sparks", 2, requires=("roads", "missing")),
        ]
        store = stub_pipeline(layers).generate_all_data(PARAMS)
        assert store["sparks"]["prior"] == ["roads"]
        assert store["roads"]["prior"] == []

    def test_foundation_injected(self):
        layers = [StubLayer("grid", 0), StubLayer("other", 1)]
        store = stub_pipeline(layers).generate_all_data(PARAMS)
        assert store["grid"]["has_grid"] is False
        assert store["other"]["has_grid"] is True

    def test_failing_layer_is_skipped(self):
        layers = [
            StubLayer("grid", 0),
            StubLayer("broken", 1, fail=True),
            StubLayer("after", 2, requires=("broken",)),
        ]
        store = stub_pipeline(layers).generate_all_data(PARAMS)
        assert "broken" not in store
        assert store["after"]["prior"] == []

    def test_duplicate_layer_names_rejected(self):
        with pytest.raises(LayerConfigurationError):
            stub_pipeline([StubLayer("a", 0), StubLayer("a", 1)])

    def test_cluster_padding_follows_params(self):
        """Test clusters land in the safe zone the layers use."""
        pipeline = default_pipeline()
        params = CompositionParams(width=1200, height=800, padding=200, cluster_count=6)
        pipeline.generate_all_data(params)

        assert pipeline.cluster_field.padding == 200
        for cluster in pipeline.cluster_field.clusters:
            assert 200 <= cluster.x <= 1000
            assert 200 <= cluster.y <= 600

    def test_clusters_reused_between_passes(self):
        pipeline = default_pipeline()
        pipeline.generate_all_data(PARAMS)
        first = list(pipeline.cluster_field.clusters)
        pipeline.generate_all_data(PARAMS)
        assert pipeline.cluster_field.clusters == first


class TestRendering:
    """Test the paint pass."""

    def test_canvas_cleared_first(self):
        canvas = RecordingCanvas()
        default_pipeline().render_all(canvas, PARAMS)
        assert canvas.operations[0] == ("clear", 1200, 800, BACKGROUND_COLOR)
        assert len(canvas.operations) > 1

    def test_paint_order_and_opacity(self):
        painted = []
        layers = [
            StubLayer("grid", 0, painted=painted),
            StubLayer("top", 10, painted=painted),
            StubLayer("bottom", -10, painted=painted),
        ]
        pipeline = stub_pipeline(layers)
        pipeline.set_layer_opacity("top", 1.7)
        pipeline.render_all(RecordingCanvas(), PARAMS)
        assert painted == [("bottom", 1.0), ("grid", 1.0), ("top", 1.0)]

        painted.clear()
        pipeline.set_layer_opacity("top", 0.25)
        pipeline.toggle_layer("bottom")
        pipeline.render_all(RecordingCanvas(), PARAMS, regenerate=False)
        assert painted == [("grid", 1.0), ("top", 0.25)]

    def test_regenerate_false_reuses_cache(self):
        pipeline = default_pipeline()
        pipeline.render_all(RecordingCanvas(), PARAMS)
        count = pipeline.random.call_count
        pipeline.render_all(RecordingCanvas(), PARAMS, regenerate=False)
        assert pipeline.random.call_count == count

    def test_cache_reuse_with_pregenerated_clusters(self):
        """Test two cached renders after clusters were placed up front."""
        pipeline = default_pipeline()
        placed = list(pipeline.cluster_field.generate(pipeline.random, PARAMS.cluster_count))

        first = pipeline.render_all(RecordingCanvas(), PARAMS, regenerate=False)
        count = pipeline.random.call_count
        exported = exported_data(pipeline)

        second = pipeline.render_all(RecordingCanvas(), PARAMS, regenerate=False)
        assert second is first
        assert pipeline.random.call_count == count
        assert pipeline.cluster_field.clusters == placed
        assert exported_data(pipeline) == exported

    def test_regenerate_false_generates_when_empty(self):
        pipeline = default_pipeline()
        pipeline.render_all(RecordingCanvas(), PARAMS, regenerate=False)
        assert set(pipeline.generated_data) == set(DEFAULT_GENERATION_ORDER)

    def test_regenerate_moves_on(self):
        """Test that regenerating continues the stream instead of repeating."""
        pipeline = default_pipeline()
        pipeline.render_all(RecordingCanvas(), PARAMS)
        first = exported_data(pipeline)
        pipeline.render_all(RecordingCanvas(), PARAMS)
        assert exported_data(pipeline) != first

        pipeline.random.reset()
        pipeline.render_all(RecordingCanvas(), PARAMS)
        assert exported_data(pipeline) == first

    def test_render_layers_subset(self):
        painted = []
        layers = [StubLayer(name, z, painted=painted) for name, z in (("grid", 0), ("a", 1), ("b", 2))]
        pipeline = stub_pipeline(layers)
        store = pipeline.render_layers(RecordingCanvas(), ["b", "grid"], PARAMS)
        assert [name for name, _ in painted] == ["grid", "b"]
        assert set(store) == {"grid", "a", "b"}

    def test_render_failure_does_not_stop_painting(self):
        painted = []

        class BrokenRender(StubLayer):
            def render(self, canvas, data, params):
                raise RuntimeError("paint failed")

        layers = [
            StubLayer("grid", 0, painted=painted),
            BrokenRender("bad", 1),
            StubLayer("good", 2, painted=painted),
        ]
        stub_pipeline(layers).render_all(RecordingCanvas(), PARAMS)
        assert [name for name, _ in painted] == ["grid", "good"]

    def test_last_render_time(self):
        pipeline = default_pipeline()
        assert pipeline.render_stats()["last_render_time"] is None
        pipeline.render_all(RecordingCanvas(), PARAMS)
        assert pipeline.render_stats()["last_render_time"] is not None


class TestLayerState:
    """Test visibility, opacity and paint order controls."""

    def test_toggle(self):
        pipeline = default_pipeline()
        assert pipeline.toggle_layer("nodes") is False
        assert pipeline.get_layer_states()["nodes"] is False
        assert pipeline.toggle_layer("nodes") is True
        assert pipeline.toggle_layer("unknown") is False

    def test_default_paint_order_sorted_by_z(self):
        pipeline = default_pipeline()
        z_values = [pipeline.slots[name].z_index for name in pipeline.layer_order]
        assert z_values == sorted(z_values)
        assert pipeline.layer_order[0] == "cores"
        assert pipeline.layer_order[-1] == "rectMasks"

    def test_set_layer_order(self):
        pipeline = default_pipeline()
        pipeline.set_layer_order(["nodes", "grid", "nodes"])
        assert pipeline.layer_order[:3] == ["nodes", "grid", "cores"]
        assert len(pipeline.layer_order) == len(DEFAULT_GENERATION_ORDER)
        assert pipeline.generation_order == DEFAULT_GENERATION_ORDER

    def test_set_layer_order_unknown(self):
        with pytest.raises(LayerConfigurationError):
            default_pipeline().set_layer_order(["grid", "clouds"])

    def test_reset_to_defaults(self):
        pipeline = default_pipeline()
        pipeline.set_layer_enabled("grid", False)
        pipeline.set_layer_opacity("nodes", 0.3)
        pipeline.set_layer_order(["rectMasks"])
        pipeline.reset_to_defaults()

        assert all(pipeline.get_layer_states().values())
        assert pipeline.layer_info("nodes")["opacity"] == 1.0
        assert pipeline.layer_order[0] == "cores"

    def test_layer_info(self):
        pipeline = default_pipeline()
        info = pipeline.layer_info("particles")
        assert info["z_index"] == 20
        assert info["requires"] == ["infrastructure", "nodes", "shading"]
        assert pipeline.layer_info("unknown") is None
        assert len(pipeline.all_layer_info()) == 12

    def test_render_stats(self):
        pipeline = default_pipeline()
        pipeline.set_layer_enabled("grid", False)
        stats = pipeline.render_stats()
        assert stats["total_layers"] == 12
        assert stats["enabled_layers"] == 11


class TestValidation:
    """Test configuration warnings."""

    def test_default_layers_valid(self):
        assert default_pipeline().validate_layers() == []

    def test_duplicate_z(self):
        warnings = stub_pipeline([StubLayer("a", 1), StubLayer("b", 1)]).validate_layers()
        assert any("Duplicate z-index 1" in w for w in warnings)

    def test_order_inconsistency(self):
        pipeline = default_pipeline()
        pipeline.set_layer_order(["rectMasks"])
        assert any("Layer order inconsistency" in w for w in pipeline.validate_layers())

    def test_requires_unregistered(self):
        warnings = stub_pipeline([StubLayer("a", 1, requires=("ghost",))]).validate_layers()
        assert warnings == ["Layer a requires unregistered layer ghost"]

    def test_requires_later_layer(self):
        layers = [StubLayer("a", 1, requires=("b",)), StubLayer("b", 2)]
        warnings = stub_pipeline(layers).validate_layers()
        assert warnings == ["Layer a requires b, which is generated after it"]
