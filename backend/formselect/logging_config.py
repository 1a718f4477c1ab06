import logging

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def setup_logging(level: str = "INFO"):
    """Set up console logging for the API process"""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("formselect").setLevel(level.upper())
