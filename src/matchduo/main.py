"""Application entry point for the MatchDuo auth server."""

from matchduo.app import App
from matchduo.config import Config
from matchduo.logging import setup_logging
from matchduo.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
