"""resumail entrypoint.

Run with:
  python -m resumail
"""

import logging
import os

import uvicorn
from dotenv import load_dotenv

from resumail.app import create_app
from resumail.config import Settings


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = Settings.from_env().validate()
    app = create_app(settings)
    logging.getLogger("resumail").info(
        "Resume mail API listening on http://localhost:%s (auth mode: %s)", settings.port, settings.auth_mode
    )
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
    )


if __name__ == "__main__":
    main()
