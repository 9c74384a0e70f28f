import sys
import time

from logly import logger
from PySide6.QtCore import QLocale
from PySide6.QtWidgets import QApplication

from pkgcatalog.application.catalog_controller import CatalogController
from pkgcatalog.config import get_settings, resolve_locale
from pkgcatalog.core.metadata_store import MetadataStore, default_sources
from pkgcatalog.logging import init_logger
from pkgcatalog.presentation.main_window import MainWindow


def main() -> int:
    settings = get_settings()
    init_logger(settings.log_level, settings.log_dir)

    app = QApplication(sys.argv)
    app.setApplicationName("pkgcatalog")

    locale = resolve_locale(settings.locale, QLocale.system().bcp47Name())
    logger.info(f"Using locale {locale}")

    start = time.perf_counter()
    store = MetadataStore.load(
        default_sources(
            extra_dirs=settings.extra_appstream_dirs,
            include_flatpak=settings.include_flatpak_appstream,
        )
    )
    logger.info(f"Loaded appstream cache in {time.perf_counter() - start:.3f}s")

    controller = CatalogController(store, locale, timeout_sec=settings.command_timeout_sec)
    window = MainWindow(controller)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
