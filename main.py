# Load environment variables FIRST, before any other imports
from dotenv import load_dotenv

load_dotenv()

import logging
import sys

from authbridge.config import settings

# stderr only: stdout carries the frame channel to the caller
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)

from authbridge.launch.orchestrator import main


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
