import logging

import uvicorn

from pushrelay.config import get_settings

logger = logging.getLogger("entrypoint")


def main() -> None:
  """Run the relay under uvicorn on the configured host and port."""
  settings = get_settings()
  logger.info("Server running on port %s", settings.port)
  # Logging is configured in the app lifespan; keep uvicorn from installing its own config.
  uvicorn.run("pushrelay.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
  main()
