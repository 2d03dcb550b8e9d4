import logging

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
_console_level = logging.WARNING


def get_logger(name):
    # Module-level logger with a single console handler
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setLevel(_console_level)
        formatter = logging.Formatter(FORMAT)
        ch.setFormatter(formatter)
        logger.addHandler(ch)
        logger.propagate = False
    return logger


def set_console_level(level):
    """Change the console level of every p2pchat logger, including ones created later."""
    global _console_level
    _console_level = level
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not name.startswith("p2pchat") or not isinstance(logger, logging.Logger):
            continue
        for handler in logger.handlers:
            if type(handler) is logging.StreamHandler:
                handler.setLevel(level)
