import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("entrypoint")


def main() -> None:
  """Launch the relay under uvicorn with a single worker."""
  # The subscriber registry lives in process memory, so more workers would split it.
  host = os.getenv("RELAY_HOST", "0.0.0.0")
  port = os.getenv("PORT", "5000")
  logger.info("Starting relay on %s:%s", host, port)
  # Replace the current process so SIGTERM reaches uvicorn and the lifespan drains in-flight pushes.
  os.execvp("uvicorn", ["uvicorn", "app.main:app", "--host", host, "--port", port, "--workers", "1", "--no-server-header"])


if __name__ == "__main__":
  main()
