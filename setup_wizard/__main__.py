"""
Setup Wizard server runner
Run this as: python -m setup_wizard
"""

import logging
import sys

import uvicorn

from .config import get_settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logger.info(f"🚀 Starting Setup Wizard server on {settings.host}:{settings.port}...")
    uvicorn.run(
        "setup_wizard.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
