"""Run the API with uvicorn: ``python -m nasiya.api``."""

import uvicorn

from nasiya.api.app import create_app
from nasiya.config import NasiyaConfig
from nasiya.logging import setup_logging


def main() -> None:
    config = NasiyaConfig.from_env()
    setup_logging(config.log_level)
    app = create_app(config=config, run_sweeper=True)
    uvicorn.run(app, host=config.api.host, port=config.api.port)


if __name__ == "__main__":
    main()
