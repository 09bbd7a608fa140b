from abc import ABC, abstractmethod

from note_outline_api.models.outline import PageExtract


class BaseOutlineParser(ABC):
    @abstractmethod
    def parse(self, html: str) -> PageExtract: ...
