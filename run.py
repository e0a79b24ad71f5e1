import logging
import sys

from talks.app import ConsoleApp
from talks.settings import load_settings
from talks.narrative.loader import load_talk
from talks.narrative.runner import TalkRunner
from talks.narrative.errors import TalkError


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    cfg = load_settings()
    logging.basicConfig(level=cfg.log_level, format="%(levelname)s %(name)s: %(message)s")

    path = argv[0] if argv else cfg.talk
    try:
        document = load_talk(path)
    except (OSError, TalkError) as e:
        logging.getLogger("run").error("Could not load talk '%s': %s", path, e)
        return 1

    ConsoleApp(cfg, TalkRunner(document)).run()
    return 0

if __name__ == "__main__":
    sys.exit(main())
