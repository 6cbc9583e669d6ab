"""Точка входа в приложение."""
import logging

from enlarger.app import ImageEnlargerApp
from enlarger.config import Settings
from enlarger.utils.logging import setup_logging


def main() -> None:
    """Настраивает логирование, создаёт и запускает главное окно приложения."""
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    logging.getLogger(__name__).info("Enlarge service: %s", settings.backend_host)
    app = ImageEnlargerApp(settings)
    app.mainloop()


if __name__ == "__main__":
    main()
