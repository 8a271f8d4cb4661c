import logging

import colorama

from .utils import color_text


class CustomFormatter(logging.Formatter):
    base_format = "[%(levelname)-8s %(asctime)s]"
    format_colors = {
        logging.DEBUG: colorama.Style.DIM,
        logging.INFO: colorama.Fore.GREEN,
        logging.WARNING: colorama.Fore.YELLOW,
        logging.ERROR: colorama.Fore.RED,
        logging.CRITICAL: colorama.Fore.RED + colorama.Style.BRIGHT,
    }

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        prefix = self.base_format
        if self.use_colors:
            prefix = color_text(prefix, self.format_colors.get(record.levelno, ""))
        return logging.Formatter(
            prefix + " %(message)s",
            datefmt=self.datefmt,
        ).format(record)
