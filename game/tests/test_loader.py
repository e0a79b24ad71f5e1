# test_loader.py
import os
import shutil
import tempfile
import textwrap
import unittest
from pathlib import Path

from talks.narrative.loader import load_talk, load_talk_file, parse_talk
from talks.narrative.runner import TalkRunner
from talks.narrative.types import NodeKind, Step
from talks.narrative.errors import DocumentError

SAMPLE = Path(__file__).resolve().parents[1] / "talks" / "simple.talk.yaml"


class TestLoadFiles(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _write(self, body: str) -> str:
        path = os.path.join(self.tmp, "test.talk.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(textwrap.dedent(body))
        return path

    def test_parse_fields(self):
        path = self._write("""
            actors:
              - slug: bob
                name: Bob
                asset: bob.png
            script:
              - id: 1
                actor: bob
                text: [first line, second line]
                sound: hi.ogg
              - id: 2
                choices:
                  - {text: Again, next: 1}
                  - {text: Stop, next: 3}
              - id: 3
                kind: join
        """)
        doc = load_talk_file(path)
        self.assertEqual(doc.actors[0].slug, "bob")
        self.assertEqual(doc.actors[0].asset, "bob.png")

        first, choice, join = doc.nodes
        self.assertEqual(first.text, "first line\nsecond line")
        self.assertEqual(first.actors, ("bob",))
        self.assertEqual(first.sound, "hi.ogg")
        self.assertEqual(choice.kind, "choice")
        self.assertEqual([(c.text, c.next) for c in choice.choices], [("Again", 1), ("Stop", 3)])
        self.assertEqual(join.kind, "join")

    def test_load_and_build(self):
        path = self._write("""
            script:
              - {id: a, text: Hi, start: true}
              - {id: b, text: Bye}
        """)
        runner = TalkRunner(load_talk(path))
        self.assertEqual(runner.current_node().text, "Hi")
        runner.next()
        self.assertEqual(runner.current_node().text, "Bye")

    def test_bad_yaml(self):
        path = self._write("script: [unclosed\n")
        with self.assertRaises(DocumentError):
            load_talk_file(path)

    def test_unknown_keys_are_logged(self):
        path = self._write("""
            script:
              - {id: 1, text: Hi, mood: grumpy}
        """)
        with self.assertLogs("talks.narrative.loader", level="WARNING") as logs:
            load_talk_file(path)
        self.assertIn("mood", logs.output[0])


class TestParseShapes(unittest.TestCase):
    def test_top_level_must_be_a_mapping(self):
        with self.assertRaises(DocumentError):
            parse_talk(["not", "a", "mapping"])

    def test_node_needs_an_id(self):
        with self.assertRaises(DocumentError):
            parse_talk({"script": [{"text": "no id"}]})

    def test_choice_needs_next(self):
        with self.assertRaises(DocumentError):
            parse_talk({"script": [{"id": 1, "choices": [{"text": "where?"}]}]})

    def test_actor_needs_slug(self):
        with self.assertRaises(DocumentError):
            parse_talk({"actors": [{"name": "Nobody"}], "script": []})

    def test_actor_id_is_accepted_as_slug(self):
        doc = parse_talk({"actors": [{"id": "bob", "name": "Bob"}], "script": [{"id": 1, "text": "x"}]})
        self.assertEqual(doc.actors[0].slug, "bob")

    def test_empty_file_gives_empty_document(self):
        doc = parse_talk(None)
        self.assertEqual(doc.nodes, ())


class TestBundledTalk(unittest.TestCase):
    def test_walk_sample(self):
        graph = load_talk(str(SAMPLE))
        runner = TalkRunner(graph)

        view = runner.current_node()
        self.assertEqual(view.text, "Hello there!")
        self.assertEqual([a.name for a in view.actors], ["Bob"])

        runner.next()
        self.assertEqual(runner.current_node().sound, "chime.ogg")
        runner.next()
        runner.next()
        self.assertEqual(runner.current_node().kind, NodeKind.CHOICE)
        self.assertEqual(len(runner.choices()), 3)

        runner.choose(2)        # "Sorry, what did you say?" loops back
        self.assertEqual(runner.current_node().text, "How have you been?")
        runner.next()
        runner.choose(0)
        self.assertEqual(runner.current_node().text, "Glad to hear it!\nLet's grab a coffee sometime.")
        runner.next()
        self.assertEqual([a.slug for a in runner.current_node().actors], ["alice", "bob"])
        self.assertIs(runner.next(), Step.ENDED)


if __name__ == "__main__":
    unittest.main()
