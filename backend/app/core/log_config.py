import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root handler once; ``seo_pulse.*`` loggers inherit it."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("seo_pulse").setLevel(level.upper())
