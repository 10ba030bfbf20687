"""Application entry point for ThinkBoard backend server."""

from thinkboard.app import App
from thinkboard.config import Config
from thinkboard.logging import setup_logging
from thinkboard.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
