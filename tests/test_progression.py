import unittest

from dataquest.model import Connection, Node, Question, Step
from dataquest.progression import AutoPlayer, StepController, autoplay_interval, blank_step, matches_target


def step(values, line=1, connections=None, **kwargs):
    nodes = [Node(id=f"n{i}", value=v) for i, v in enumerate(values)]
    return Step(line_number=line, nodes=nodes, connections=connections or [], **kwargs)


def linked_list_question():
    return Question(title="build", steps=[
        step([]),
        step(["5"], line=2),
        step(["5", "7"], line=3,
             connections=[Connection(id="c0", from_id="n0", to_id="n1", label="next")]),
    ])


def fill_in_question():
    return Question(title="fill", steps=[
        step(["5", ""], user_input_required=True, available_elements=["7", "9"]),
        step(["5", "7"], line=2),
        step(["5", "7"], line=3),
    ])


class MatchingTests(unittest.TestCase):
    def test_empty_target_cells_are_unconstrained(self):
        self.assertTrue(matches_target(["5", "anything", "7"], ["5", "", "7"]))

    def test_required_cells_must_match(self):
        self.assertFalse(matches_target(["5", "X", "9"], ["5", "", "7"]))

    def test_target_cells_past_the_live_snapshot_are_unconstrained(self):
        self.assertTrue(matches_target(["5"], ["5", "7"]))
        self.assertFalse(matches_target(["6"], ["5", "7"]))

    def test_blanking_keeps_values_already_in_target(self):
        blanked = blank_step(step(["5", "7"]), step(["5", "8"]))
        self.assertEqual(blanked.values, ["5", ""])

    def test_explicit_prefilled_flag_wins(self):
        source = step(["5", "7"])
        source.nodes[0].prefilled = False
        source.nodes[1].prefilled = True
        blanked = blank_step(source, step(["5", "8"]))
        self.assertEqual(blanked.values, ["", "7"])
        self.assertEqual(source.values, ["5", "7"])


class StepControllerTests(unittest.TestCase):
    def test_question_without_steps_is_refused(self):
        with self.assertRaises(ValueError):
            StepController(Question(title="empty", steps=[]))

    def test_linked_list_build_scenario(self):
        controller = StepController(linked_list_question())
        self.assertTrue(controller.advance())
        self.assertTrue(controller.advance())
        self.assertEqual(controller.index, 2)
        current = controller.current_step
        self.assertEqual(current.values, ["5", "7"])
        self.assertEqual(len(current.connections), 1)
        self.assertEqual(current.connections[0].label, "next")

    def test_working_copy_never_touches_canonical_step(self):
        question = fill_in_question()
        controller = StepController(question)
        controller.set_value(1, "7")
        self.assertEqual(question.steps[0].values, ["5", ""])
        self.assertIsNot(controller.current_step, question.steps[0])

    def test_advance_is_blocked_until_complete(self):
        controller = StepController(fill_in_question())
        self.assertFalse(controller.is_complete)
        self.assertFalse(controller.advance())
        self.assertEqual(controller.index, 0)

        self.assertTrue(controller.set_value(1, "9"))
        self.assertFalse(controller.is_complete)
        self.assertTrue(controller.set_value(1, "7"))
        self.assertTrue(controller.is_complete)
        self.assertTrue(controller.advance())
        self.assertEqual(controller.index, 1)

    def test_set_value_ignored_once_complete_or_on_passive_step(self):
        controller = StepController(fill_in_question())
        controller.set_value(1, "7")
        self.assertFalse(controller.set_value(1, "9"))
        controller.advance()
        self.assertFalse(controller.set_value(0, "9"))

    def test_out_of_range_cell_is_ignored(self):
        controller = StepController(fill_in_question())
        revision = controller.revision
        self.assertFalse(controller.set_value(5, "7"))
        self.assertEqual(controller.revision, revision)

    def test_mutations_bump_revision(self):
        controller = StepController(fill_in_question())
        revision = controller.revision
        controller.set_value(1, "9")
        self.assertEqual(controller.revision, revision + 1)

    def test_multiple_choice_scenario(self):
        question = Question(title="mc", steps=[
            step(["1"], is_multiple_choice=True,
                 multiple_choice_answers=["O(1)", "O(n)", "O(log n)"],
                 multiple_choice_correct_answer="O(log n)"),
            step(["1"]),
        ])
        controller = StepController(question)
        self.assertTrue(controller.select_answer("O(n)"))
        self.assertFalse(controller.is_complete)
        self.assertTrue(controller.select_answer("O(log n)"))
        self.assertTrue(controller.is_complete)
        self.assertFalse(controller.select_answer("O(1)"))

    def test_retreat_restores_canonical_step(self):
        question = Question(title="back", steps=[
            step(["1"]),
            step(["5", "7"], user_input_required=True, available_elements=["5", "8"]),
            step(["5", "8"]),
        ])
        controller = StepController(question)
        controller.advance()
        self.assertEqual(controller.current_step.values, ["5", ""])
        controller.show_answer()
        controller.advance()
        self.assertEqual(controller.index, 2)

        self.assertTrue(controller.retreat())
        self.assertEqual(controller.index, 1)
        self.assertEqual(controller.current_step.values, ["5", "7"])
        self.assertIsNot(controller.current_step, question.steps[1])

    def test_retreat_from_first_step_is_a_noop(self):
        controller = StepController(linked_list_question())
        self.assertFalse(controller.retreat())
        self.assertEqual(controller.index, 0)

    def test_user_input_step_starts_blanked(self):
        question = Question(title="blank", steps=[
            step(["5", "7"], user_input_required=True),
            step(["5", "8"]),
        ])
        controller = StepController(question)
        self.assertEqual(controller.current_step.values, ["5", ""])

    def test_show_answer_fills_target_and_counts(self):
        controller = StepController(fill_in_question())
        self.assertTrue(controller.show_answer())
        self.assertEqual(controller.current_step.values, ["5", "7"])
        self.assertEqual(controller.answers_revealed, 1)
        self.assertTrue(controller.is_complete)

    def test_show_answer_on_passive_step_does_nothing(self):
        controller = StepController(linked_list_question())
        self.assertFalse(controller.show_answer())
        self.assertEqual(controller.answers_revealed, 0)

    def test_question_completion_fires_once(self):
        completions = []
        controller = StepController(linked_list_question(),
                                    on_question_complete=lambda: completions.append(True))
        controller.advance()
        controller.advance()
        self.assertTrue(controller.advance())
        self.assertTrue(controller.advance())
        self.assertTrue(controller.finished)
        self.assertEqual(len(completions), 1)

    def test_step_changed_callback(self):
        seen = []
        controller = StepController(linked_list_question(), on_step_changed=seen.append)
        controller.advance()
        controller.advance()
        controller.retreat()
        self.assertEqual(seen, [1, 2, 1])

    def test_show_answer_after_solving_costs_nothing(self):
        controller = StepController(fill_in_question())
        controller.set_value(1, "7")
        self.assertFalse(controller.show_answer())
        self.assertEqual(controller.answers_revealed, 0)

    def test_solved_cells_come_back_on_revisit(self):
        question = Question(title="revisit", steps=[
            step(["1"]),
            step(["5", ""], user_input_required=True, available_elements=["7"]),
            step(["5", "7"]),
        ])
        controller = StepController(question)
        controller.advance()
        controller.set_value(1, "7")
        controller.advance()
        controller.retreat()
        controller.retreat()
        controller.advance()
        self.assertEqual(controller.index, 1)
        self.assertEqual(controller.current_step.values, ["5", "7"])
        self.assertTrue(controller.is_complete)

    def test_revealed_answer_comes_back_on_revisit(self):
        question = Question(title="revisit", steps=[
            step(["1"]),
            step(["5", ""], user_input_required=True, available_elements=["7"]),
            step(["5", "7"]),
        ])
        controller = StepController(question)
        controller.advance()
        controller.show_answer()
        controller.advance()
        controller.retreat()
        controller.retreat()
        controller.advance()
        self.assertEqual(controller.current_step.values, ["5", "7"])
        self.assertFalse(controller.show_answer())
        self.assertEqual(controller.answers_revealed, 1)

    def test_chosen_answer_is_kept_for_revisits(self):
        question = Question(title="mc", steps=[
            step(["1"], is_multiple_choice=True, multiple_choice_answers=["a", "b"],
                 multiple_choice_correct_answer="b"),
            step(["1"]),
        ])
        controller = StepController(question)
        controller.select_answer("b")
        controller.advance()
        controller.retreat()
        self.assertEqual(controller.selected_answer, "b")

    def test_short_step_is_solvable(self):
        question = Question(title="grow", steps=[
            step([""], user_input_required=True, available_elements=["5"]),
            step(["5", "7"]),
        ])
        controller = StepController(question)
        self.assertTrue(controller.set_value(0, "5"))
        self.assertTrue(controller.is_complete)

    def test_completed_step_without_stored_cells_shows_target(self):
        controller = StepController(fill_in_question(), completed_steps={0})
        self.assertEqual(controller.current_step.values, ["5", "7"])

    def test_previously_completed_steps_stay_complete(self):
        controller = StepController(fill_in_question(), completed_steps={0})
        self.assertTrue(controller.is_complete)
        self.assertTrue(controller.advance())


class AutoPlayTests(unittest.TestCase):
    def test_interval_scales_with_comment(self):
        self.assertEqual(autoplay_interval(None), 3.0)
        self.assertEqual(autoplay_interval(""), 2.0)
        self.assertAlmostEqual(autoplay_interval("x" * 20), 3.0)
        self.assertEqual(autoplay_interval("x" * 500), 7.0)

    def test_advances_after_interval(self):
        controller = StepController(linked_list_question())
        player = AutoPlayer(controller)
        self.assertTrue(player.start())
        player.update(2.9)
        self.assertEqual(controller.index, 0)
        player.update(0.2)
        self.assertEqual(controller.index, 1)

    def test_stops_at_last_step(self):
        controller = StepController(linked_list_question())
        player = AutoPlayer(controller)
        player.start()
        player.update(3.0)
        player.update(3.0)
        self.assertEqual(controller.index, 2)
        self.assertFalse(player.active)
        self.assertFalse(controller.finished)

    def test_does_not_run_on_interactive_steps(self):
        controller = StepController(fill_in_question())
        player = AutoPlayer(controller)
        self.assertFalse(player.start())
        player.update(10.0)
        self.assertEqual(controller.index, 0)

    def test_stops_before_interactive_step(self):
        question = Question(title="mixed", steps=[
            step(["1"], comment=""),
            step(["1", ""], user_input_required=True),
            step(["1", "2"]),
        ])
        controller = StepController(question)
        player = AutoPlayer(controller)
        player.start()
        player.update(2.0)
        self.assertEqual(controller.index, 1)
        self.assertFalse(player.active)


if __name__ == "__main__":
    unittest.main()
