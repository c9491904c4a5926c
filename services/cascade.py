import logging
from typing import Callable

logger = logging.getLogger(__name__)


class Cascade:
    """
    Collects secondary writes that follow a committed primary write.

    A failing step is logged and recorded as a warning; it never undoes the
    primary write or fails the request.
    """

    def __init__(self, context: str):
        self.context = context
        self.warnings: list[str] = []

    def run(self, description: str, step: Callable, *args, **kwargs):
        try:
            return step(*args, **kwargs)
        except Exception as e:
            message = f"{self.context}: could not {description}: {str(e)}"
            logger.warning(message)
            self.warnings.append(message)
            return None

    def attach(self, data: dict) -> dict:
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data
