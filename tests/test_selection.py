"""Tests for the source/target selection coordinator."""
import pytest

from mapinteract.entities.map_entity import MapEntity
from mapinteract.plugins import SelectionPlugin, SelectionState, tag_vote

from conftest import ORIGIN


@pytest.fixture
def selection(world):
    """Selection plugin installed on the world, voting by tag."""
    plugin = SelectionPlugin(world.context())
    plugin.install(world)
    plugin.events['entity_source'].subscribe(tag_vote("drone"))
    plugin.events['entity_target'].subscribe(tag_vote("target"))
    return plugin


@pytest.fixture
def recorded(selection):
    """Lists of target_set and selection_changed payloads."""
    events = {'target_set': [], 'selection_changed': []}
    selection.events['target_set'].subscribe(
        lambda source, target: events['target_set'].append((source.id, target.id))
    )
    selection.events['selection_changed'].subscribe(
        lambda active, source: events['selection_changed'].append((active, source.id if source else None))
    )
    return events


class TestSelectionFlow:
    """Tests for the two-click protocol."""

    def test_source_then_target(self, world, selection, recorded, drone, target):
        """Test a source click followed by a target click commits once."""
        world.click(drone.id)
        assert selection.state is SelectionState.AWAITING_TARGET
        assert selection.source_entity is drone

        world.click(target.id)

        assert recorded['target_set'] == [(drone.id, target.id)]
        assert recorded['selection_changed'] == [(True, drone.id), (False, None)]
        assert selection.state is SelectionState.IDLE
        assert selection.source_entity is None
        # Native selection of the target was vetoed
        assert world.selected_entity_id == drone.id

    def test_empty_space_cancels(self, world, selection, recorded, drone):
        """Test clicking empty space ends the session without a target."""
        world.click(drone.id)
        world.click(None, ORIGIN.offset_meters(north=300))

        assert recorded['target_set'] == []
        assert selection.state is SelectionState.IDLE
        assert recorded['selection_changed'][-1] == (False, None)

    def test_unacceptable_target_cancels(self, world, selection, recorded, drone):
        """Test a click on an entity nobody accepts as target cancels."""
        building = world.add(MapEntity(id="building-7", position=ORIGIN.offset_meters(east=50)))
        world.click(drone.id)
        world.click(building.id)

        assert recorded['target_set'] == []
        assert selection.state is SelectionState.IDLE

    def test_second_source_keeps_original(self, world, selection, recorded, drone):
        """Test clicking another source while awaiting keeps the first source."""
        other = world.add(MapEntity(id="drone-2", position=ORIGIN.offset_meters(north=500), tags={"drone"}))
        world.click(drone.id)
        world.click(other.id)

        assert selection.state is SelectionState.AWAITING_TARGET
        assert selection.source_entity is drone
        assert recorded['selection_changed'] == [(True, drone.id)]

    def test_clicking_own_source_again(self, world, selection, recorded, drone):
        """Test re-clicking the pending source changes nothing."""
        world.click(drone.id)
        world.click(drone.id)

        assert selection.is_active
        assert recorded['selection_changed'] == [(True, drone.id)]

    def test_no_source_voters(self, world, drone):
        """Test nothing starts when no subscriber approves sources."""
        plugin = SelectionPlugin(world.context())
        plugin.install(world)
        world.click(drone.id)

        assert plugin.state is SelectionState.IDLE
        assert world.selected_entity_id == drone.id

    def test_click_on_non_source_when_idle(self, world, selection, recorded, target):
        """Test clicking a target first selects it natively and starts nothing."""
        world.click(target.id)

        assert selection.state is SelectionState.IDLE
        assert recorded['selection_changed'] == []
        assert world.selected_entity_id == target.id


class TestSelectionHooks:
    """Tests for the host hook return values."""

    def test_selecting_vetoed_only_while_active(self, world, selection, drone, target):
        """Test native selection is allowed when idle and vetoed when awaiting."""
        assert selection.on_selecting(target, None) is True
        world.click(drone.id)
        assert selection.on_selecting(target, None) is False

    def test_prevented_source_click_when_idle(self, world, selection, drone):
        """Test a source click vetoed by someone else does not start a session."""
        world.on_selecting.subscribe(lambda entity, location: False)
        world.click(drone.id)

        assert selection.state is SelectionState.IDLE
        assert selection.on_click_prevented(drone, None) is False

    def test_on_click_without_selecting_hook(self, world, selection, drone, target):
        """Test a target reaching on_click directly is still committed."""
        targets = []
        selection.events['target_set'].subscribe(lambda source, chosen: targets.append(chosen.id))
        selection.start_selection(drone)

        assert selection.on_click(target, None) is False
        assert targets == [target.id]
        assert not selection.is_active


class TestSelectionLifecycle:
    """Tests for cancel, re-entrancy and destroy."""

    def test_cancel_when_idle_is_silent(self, selection, recorded):
        """Test cancelling with no session emits nothing."""
        selection.cancel_selection()
        assert recorded['selection_changed'] == []

    def test_cancel_active_session(self, world, selection, recorded, drone):
        """Test cancel_selection ends a pending session."""
        world.click(drone.id)
        selection.cancel_selection()

        assert selection.state is SelectionState.IDLE
        assert recorded['selection_changed'] == [(True, drone.id), (False, None)]

    def test_target_set_subscriber_starts_new_session(self, world, selection, drone, target):
        """Test a session started from target_set is not ended by the commit."""
        other = world.add(MapEntity(id="drone-2", position=ORIGIN, tags={"drone"}))
        selection.events['target_set'].subscribe(lambda source, chosen: selection.start_selection(other))

        world.click(drone.id)
        world.click(target.id)

        assert selection.state is SelectionState.AWAITING_TARGET
        assert selection.source_entity is other

    def test_destroy_unsubscribes(self, world, selection, drone):
        """Test destroy detaches from every click hook."""
        world.click(drone.id)
        selection.destroy()

        assert len(world.on_click) == 0
        assert len(world.on_selecting) == 0
        assert len(world.on_click_prevented) == 0
        assert len(world.on_selected) == 0
        assert selection.state is SelectionState.IDLE

    def test_actions_noop_after_host_teardown(self, world, selection, drone):
        """Test start_selection does nothing once the host is destroyed."""
        world.destroy()
        selection.start_selection(drone)
        assert selection.state is SelectionState.IDLE
