import argparse
import logging
import sys

from masjid.core.app import MasjidApp
from masjid.plugins.prayer_times.service import seed_default_prayer_slots


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        ))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.DEBUG)
        logging.debug("Basic logging initialized")


def main(argv=None):
    setup_basic_logging()

    parser = argparse.ArgumentParser(description='Masjid community service')
    parser.add_argument('--config', help='Path to config file (default: ./config.yaml)')
    parser.add_argument('--seed', action='store_true',
                        help='Insert the default prayer schedule when the prayer_times table is empty')
    args = parser.parse_args(argv)

    app = MasjidApp(config_path=args.config or "config.yaml")
    if args.seed:
        seed_default_prayer_slots(app.store)
    app.run()


if __name__ == "__main__":
    main()
