"""Tests for plugin installation and the selection -> transit wiring."""
import pytest

from mapinteract.plugins import (
    AnimationPlugin, Plugin, PluginHost, SelectionPlugin, SelectionState,
    TracerPlugin, tag_vote, wire_transit,
)


class RecordingPlugin(Plugin):
    """Plugin that logs install/destroy calls into a shared list."""

    def __init__(self, name, log, fail_on_destroy=False):
        self.name = name
        self.log = log
        self.fail_on_destroy = fail_on_destroy
        self.actions = {'ping': lambda: name}
        self.events = {}

    def install(self, clicks):
        self.log.append(("install", self.name))

    def destroy(self):
        self.log.append(("destroy", self.name))
        if self.fail_on_destroy:
            raise RuntimeError("boom")


class TestPluginHost:
    """Tests for PluginHost."""

    def test_add_installs_once(self, context):
        """Test a plugin is installed on add and a taken name is kept."""
        log = []
        host = PluginHost(context)
        first = host.add("a", RecordingPlugin("a", log))
        again = host.add("a", RecordingPlugin("a2", log))

        assert again is first
        assert log == [("install", "a")]
        assert host.names == ["a"]
        assert host.actions("a")['ping']() == "a"

    def test_destroy_in_reverse_order(self, context):
        """Test plugins are destroyed newest first, and only once."""
        log = []
        host = PluginHost(context)
        host.add("a", RecordingPlugin("a", log))
        host.add("b", RecordingPlugin("b", log))

        host.destroy()
        host.destroy()

        assert log[2:] == [("destroy", "b"), ("destroy", "a")]
        assert host.get("a") is None

    def test_failing_destroy_is_contained(self, context):
        """Test one failing plugin does not stop the others being destroyed."""
        log = []
        host = PluginHost(context)
        host.add("a", RecordingPlugin("a", log))
        host.add("b", RecordingPlugin("b", log, fail_on_destroy=True))

        host.destroy()

        assert ("destroy", "a") in log

    def test_selection_hooks_installed(self, world, context):
        """Test adding the selection plugin subscribes it to the click hooks."""
        host = PluginHost(context)
        host.add("selection", SelectionPlugin(context))

        assert len(world.on_click) == 1
        assert len(world.on_selecting) == 1
        assert set(host.events("selection")) == {
            'entity_source', 'entity_target', 'target_set', 'selection_changed',
        }

        host.destroy()
        assert len(world.on_click) == 0

    def test_unknown_name(self, context):
        """Test looking up actions of a missing plugin raises KeyError."""
        with pytest.raises(KeyError):
            PluginHost(context).actions("missing")


class TestTransitWiring:
    """End-to-end: select a drone, pick a target, watch it fly and trace."""

    @pytest.fixture
    def host(self, context):
        host = PluginHost(context)
        selection = host.add("selection", SelectionPlugin(context))
        animation = host.add("animation", AnimationPlugin(context))
        tracer = host.add("tracer", TracerPlugin(context, {"min_point_distance": 100}))
        selection.events['entity_source'].subscribe(tag_vote("drone"))
        selection.events['entity_target'].subscribe(tag_vote("target"))
        wire_transit(selection, animation, tracer)
        return host

    def test_click_source_then_target(self, world, host, drone, target):
        """Test the source is animated to the target and leaves a trace."""
        completions = []
        host.events("animation")['complete'].subscribe(
            lambda source_id, target_id: completions.append((source_id, target_id))
        )
        destination = target.position

        world.click(drone.id)
        world.click(target.id)

        assert host.get("selection").state is SelectionState.IDLE
        assert host.get("animation").state.is_animating
        assert host.get("tracer").get_trace(drone.id) is not None

        world.run_for(6000, frame_ms=50)

        assert completions == [(drone.id, target.id)]
        assert drone.position.distance_to(destination) <= 100
        trace = host.get("tracer").get_trace(drone.id)
        assert len(trace) > 3
        assert [c.birth_index for c in trace.coordinates] == sorted(c.birth_index for c in trace.coordinates)

    def test_unwired(self, world, host, drone, target):
        """Test removing the wiring leaves commits without a transit."""
        selection = host.get("selection")
        unwire = wire_transit(selection, host.get("animation"))
        unwire()

        extra = []
        selection.events['target_set'].subscribe(lambda source, chosen: extra.append(chosen.id))
        world.click(drone.id)
        world.click(target.id)

        assert extra == [target.id]
        # The fixture's own wiring is still in place
        assert host.get("animation").state.is_animating

    def test_teardown(self, world, host, drone, target):
        """Test destroying the host stops animation and tracing."""
        world.click(drone.id)
        world.click(target.id)
        host.destroy()
        world.step(16)

        assert world.frame_callback_count == 0
        assert not any(e.id.startswith("tracer-point-") for e in world.entities())
