import unittest

from dataquest import config
from dataquest.dragdrop import DragDropController, DragPhase, DropOutcome, Tray, tray_rect
from dataquest.model import Node, Point, Rect

PANE = Rect(0, 0, 600, 400)
TRAY = tray_rect(PANE)


def cells(*values):
    return [Node(id=f"n{i}", value=v, position=Point(100 + i * 100, 150))
            for i, v in enumerate(values)]


class Recorder:
    def __init__(self, accept=True):
        self.calls = []
        self.accept = accept

    def __call__(self, value, index):
        self.calls.append((value, index))
        return self.accept


class TrayTests(unittest.TestCase):
    def test_tray_sits_at_the_bottom_of_the_pane(self):
        self.assertEqual(TRAY, Rect(0, 300, 600, 100))

    def test_slots_are_centered(self):
        tray = Tray(["1", "2"])
        slots = tray.slots(TRAY)
        self.assertEqual([t for t, _ in slots], ["1", "2"])
        left, right = slots[0][1], slots[1][1]
        self.assertAlmostEqual((left.x + right.right) / 2, TRAY.center.x)
        self.assertAlmostEqual(left.center.y, TRAY.center.y)

    def test_only_foreign_tokens_are_returned(self):
        tray = Tray(["1"])
        tray.give_back("1")
        tray.give_back("9")
        self.assertEqual(tray.tokens(), ["1", "9"])
        tray.take("9")
        self.assertEqual(tray.tokens(), ["1"])


class DragDropControllerTests(unittest.TestCase):
    def setUp(self):
        self.tray = Tray(["5", "7"])
        self.recorder = Recorder()
        self.dnd = DragDropController(self.tray, on_drop=self.recorder)

    def _token_center(self, token):
        for t, slot in self.tray.slots(TRAY):
            if t == token:
                return slot.center
        raise AssertionError(token)

    def test_drag_starts_from_tray_slot(self):
        nodes = cells("", "")
        self.assertTrue(self.dnd.pointer_down(self._token_center("7"), nodes, TRAY))
        self.assertEqual(self.dnd.phase, DragPhase.DRAGGING)
        self.assertEqual(self.dnd.drag.token, "7")
        self.assertIsNone(self.dnd.drag.source_index)

    def test_drag_does_not_start_from_empty_node(self):
        nodes = cells("", "")
        self.assertFalse(self.dnd.pointer_down(nodes[0].position, nodes, TRAY))
        self.assertEqual(self.dnd.phase, DragPhase.IDLE)

    def test_snap_radius_is_strict(self):
        nodes = cells("")
        center = nodes[0].position
        self.dnd.begin("5", Point(0, 0))
        eps = 0.01
        self.assertEqual(self.dnd.pointer_move(Point(center.x + config.SNAP_RADIUS - eps, center.y), nodes), 0)
        self.assertIsNone(self.dnd.pointer_move(Point(center.x + config.SNAP_RADIUS, center.y), nodes))
        self.assertIsNone(self.dnd.pointer_move(Point(center.x + config.SNAP_RADIUS + eps, center.y), nodes))

    def test_nearest_eligible_node_wins(self):
        nodes = cells("", "")
        self.dnd.begin("5", Point(0, 0))
        self.assertEqual(self.dnd.pointer_move(Point(160, 150), nodes), 1)

    def test_source_is_never_a_target(self):
        nodes = cells("5", "")
        self.dnd.pointer_down(nodes[0].position, nodes, TRAY)
        self.assertIsNone(self.dnd.pointer_move(nodes[0].position, nodes, TRAY))

    def test_filled_nodes_are_ignored_without_swap(self):
        dnd = DragDropController(self.tray, on_drop=self.recorder, allow_swap=False)
        nodes = cells("9", "")
        dnd.begin("5", Point(0, 0))
        self.assertIsNone(dnd.pointer_move(nodes[0].position, nodes))

    def test_tray_drop_places_value(self):
        nodes = cells("", "")
        self.dnd.pointer_down(self._token_center("5"), nodes, TRAY)
        result = self.dnd.pointer_up(nodes[1].position, nodes, TRAY)
        self.assertEqual(result.outcome, DropOutcome.PLACED)
        self.assertEqual(result.target_index, 1)
        self.assertEqual(self.recorder.calls, [("5", 1)])
        self.assertEqual(self.dnd.phase, DragPhase.IDLE)
        self.assertEqual(self.tray.tokens(), ["5", "7"])

    def test_node_to_node_clears_source_first(self):
        nodes = cells("5", "")
        self.dnd.pointer_down(nodes[0].position, nodes, TRAY)
        result = self.dnd.pointer_up(nodes[1].position, nodes, TRAY)
        self.assertEqual(result.outcome, DropOutcome.PLACED)
        self.assertEqual(self.recorder.calls, [("", 0), ("5", 1)])

    def test_displaced_value_returns_to_tray(self):
        nodes = cells("9", "")
        self.dnd.pointer_down(self._token_center("5"), nodes, TRAY)
        result = self.dnd.pointer_up(nodes[0].position, nodes, TRAY)
        self.assertEqual(result.displaced, "9")
        self.assertIn("9", self.tray.tokens())

    def test_release_over_tray_returns_token(self):
        nodes = cells("3", "")
        self.dnd.pointer_down(nodes[0].position, nodes, TRAY)
        result = self.dnd.pointer_up(Point(300, 350), nodes, TRAY)
        self.assertEqual(result.outcome, DropOutcome.RETURNED)
        self.assertEqual(self.recorder.calls, [("", 0)])
        self.assertEqual(self.tray.tokens(), ["5", "7", "3"])

    def test_release_far_away_is_rejected(self):
        nodes = cells("", "")
        self.dnd.pointer_down(self._token_center("5"), nodes, TRAY)
        result = self.dnd.pointer_up(Point(500, 20), nodes, TRAY)
        self.assertEqual(result.outcome, DropOutcome.REJECTED)
        self.assertFalse(result.accepted)
        self.assertEqual(self.recorder.calls, [])
        self.assertEqual(self.dnd.phase, DragPhase.IDLE)

    def test_callback_can_veto_a_drop(self):
        recorder = Recorder(accept=False)
        dnd = DragDropController(self.tray, on_drop=recorder)
        nodes = cells("", "")
        dnd.begin("5", Point(0, 0))
        result = dnd.pointer_up(nodes[0].position, nodes, TRAY)
        self.assertEqual(result.outcome, DropOutcome.REJECTED)
        self.assertEqual(recorder.calls, [("5", 0)])

    def test_new_drag_clears_stale_hover(self):
        nodes = cells("", "")
        self.dnd.begin("5", Point(0, 0))
        self.dnd.pointer_move(nodes[0].position, nodes)
        self.assertEqual(self.dnd.hovered_index, 0)
        self.dnd.begin("7", Point(0, 0))
        self.assertIsNone(self.dnd.hovered_index)

    def test_pointer_up_without_drag_is_rejected(self):
        result = self.dnd.pointer_up(Point(0, 0), cells(""), TRAY)
        self.assertEqual(result.outcome, DropOutcome.REJECTED)


if __name__ == "__main__":
    unittest.main()
