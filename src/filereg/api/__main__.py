# src/filereg/api/__main__.py
from __future__ import annotations

import uvicorn

from filereg.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so config vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from filereg.api.app import create_app
    from filereg.api.structured_logging import configure_structured_logging
    from filereg.config import load_api_settings, load_registry_config

    configure_structured_logging()
    cfg = load_registry_config()

    settings = load_api_settings()
    uvicorn.run(create_app(), host=settings.host, port=cfg.port, log_level="info")


if __name__ == "__main__":
    main()
