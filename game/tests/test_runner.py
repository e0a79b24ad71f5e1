# test_runner.py
import unittest

from talks.narrative.builder import GraphBuilder
from talks.narrative.runner import TalkRunner
from talks.narrative.types import GraphDocument, Node, NodeKind, Step
from talks.narrative.errors import (
    AmbiguousNextError,
    ChoiceIndexError,
    NotAChoiceError,
    TalkError,
    UnknownNodeError,
)


def _talk():
    """ Hello (bob) -> choice[fine, notfine] -> Glad / Sorry (alice) """
    return (GraphBuilder()
            .add_actor("bob", "Bob", "bob.png")
            .add_actor("alice", "Alice")
            .say("Hello", actors="bob", sound="hello.ogg")
            .choose_between([
                ("fine", GraphBuilder().say("Glad", actors="alice")),
                ("notfine", GraphBuilder().say("Sorry", actors="alice")),
            ])
            .build())


class TestCurrentNode(unittest.TestCase):
    def test_view_resolves_actors(self):
        runner = TalkRunner(_talk())
        view = runner.current_node()
        self.assertEqual(view.kind, NodeKind.SAY)
        self.assertEqual([a.name for a in view.actors], ["Bob"])
        self.assertEqual(view.actors[0].asset, "bob.png")
        self.assertEqual(view.sound, "hello.ogg")
        self.assertEqual(view.choices, ())

    def test_choices_only_on_choice_nodes(self):
        runner = TalkRunner(_talk())
        with self.assertRaises(NotAChoiceError):
            runner.choices()
        runner.next()
        self.assertEqual(runner.choices(), ("fine", "notfine"))
        self.assertEqual(runner.current_node().text, None)

    def test_is_finished(self):
        runner = TalkRunner(_talk())
        self.assertFalse(runner.is_finished)
        runner.next()
        runner.choose(0)
        self.assertTrue(runner.is_finished)


class TestNext(unittest.TestCase):
    def test_next_on_multi_option_choice_fails(self):
        runner = TalkRunner(_talk())
        runner.next()
        here = runner.current
        with self.assertRaises(AmbiguousNextError) as ctx:
            runner.next()
        self.assertEqual(ctx.exception.branches, 2)
        self.assertEqual(runner.current, here)

    def test_next_on_single_option_choice_advances(self):
        doc = GraphBuilder().choose_between([("only", GraphBuilder().say("Done"))]).build()
        runner = TalkRunner(doc)
        self.assertIs(runner.next(), Step.ADVANCED)
        self.assertEqual(runner.current_node().text, "Done")

    def test_next_on_branching_say_fails(self):
        b = GraphBuilder().say("A")
        a = b.last_node_id()
        b.say("B")
        bid = b.last_node_id()
        b.connect_to(a).say("C")     # B now leads to both A and C
        runner = TalkRunner(b.build())
        runner.next()
        self.assertEqual(runner.current, bid)
        with self.assertRaises(AmbiguousNextError):
            runner.next()
        self.assertEqual(runner.current, bid)

    def test_end_is_not_an_error(self):
        runner = TalkRunner(GraphBuilder().say("Only").build())
        for _ in range(3):
            self.assertIs(runner.next(), Step.ENDED)


class TestChoose(unittest.TestCase):
    def test_choose_on_say_fails(self):
        runner = TalkRunner(_talk())
        here = runner.current
        with self.assertRaises(NotAChoiceError):
            runner.choose(0)
        self.assertEqual(runner.current, here)

    def test_choose_out_of_range(self):
        runner = TalkRunner(_talk())
        runner.next()
        here = runner.current
        for bad in (2, -1, 99):
            with self.assertRaises(ChoiceIndexError):
                runner.choose(bad)
            self.assertEqual(runner.current, here)

    def test_choose_at_the_end(self):
        runner = TalkRunner(_talk())
        runner.next()
        runner.choose(0)
        self.assertIs(runner.choose(0), Step.ENDED)


class TestJumps(unittest.TestCase):
    def test_jump_anywhere_and_back(self):
        doc = _talk()
        runner = TalkRunner(doc)
        first = runner.current
        sorry = next(n.id for n in doc.nodes.values() if n.text == "Sorry")

        self.assertIs(runner.jump_to(sorry), Step.ADVANCED)
        self.assertEqual(runner.current_node().text, "Sorry")
        self.assertIs(runner.jump_to(first), Step.ADVANCED)
        self.assertEqual(runner.current_node().text, "Hello")

    def test_jump_to_start(self):
        doc = _talk()
        runner = TalkRunner(doc)
        runner.jump_to(doc.start)
        self.assertEqual(runner.current_node().kind, NodeKind.START)
        runner.next()
        self.assertEqual(runner.current_node().text, "Hello")

    def test_unknown_jump_leaves_cursor(self):
        runner = TalkRunner(_talk())
        here = runner.current
        with self.assertRaises(UnknownNodeError):
            runner.jump_to(-5)
        with self.assertRaises(UnknownNodeError):
            runner.jump_to_alias("nope")
        self.assertEqual(runner.current, here)

    def test_reset(self):
        runner = TalkRunner(_talk())
        first = runner.current
        runner.next()
        runner.choose(1)
        runner.reset()
        self.assertEqual(runner.current, first)


class TestSharing(unittest.TestCase):
    def test_runners_are_independent(self):
        doc = _talk()
        r1, r2 = TalkRunner(doc), TalkRunner(doc)
        r1.next()
        r1.choose(0)
        self.assertEqual(r2.current_node().text, "Hello")
        self.assertEqual(r1.current_node().text, "Glad")

    def test_document_is_read_only(self):
        doc = _talk()
        with self.assertRaises(TypeError):
            doc.nodes[123] = Node(123, NodeKind.SAY, "x")
        with self.assertRaises(TypeError):
            doc.actors["x"] = None

    def test_start_must_lead_somewhere(self):
        doc = GraphDocument(nodes={1: Node(1, NodeKind.START)}, edges=(), actors={}, start=1)
        with self.assertRaises(TalkError):
            TalkRunner(doc)


if __name__ == "__main__":
    unittest.main()
