import logging
from os import getenv
from pathlib import Path

from .app import WebService
from .config import ServiceConfig

logger = logging.getLogger(__name__)


def load_config() -> ServiceConfig:
    """
    Service configuration from the JSON file named by FIBRE_CONFIG, or from
    MAIN_HOST / MAIN_PORT / FIBRE_INSTANCE / FIBRE_API_KEY.
    """
    config_path = getenv("FIBRE_CONFIG")
    if config_path:
        return ServiceConfig.model_validate_json(Path(config_path).read_text())

    address = getenv("MAIN_HOST", "127.0.0.1") + ":" + getenv("MAIN_PORT", "8080")
    return ServiceConfig(
        instance=getenv("FIBRE_INSTANCE", "main"),
        address=address,
        api_key=getenv("FIBRE_API_KEY") or None,
    )


def main() -> None:
    logging.basicConfig(
        level=getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = load_config()

    service = WebService(config)
    service.use_request_logger()
    if config.api_key:
        service.use_api_key()
    service.run()


if __name__ == "__main__":
    main()
