from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from src.consumer import BLANK_TEMPLATE, Consumer, ConsumerTemplate


@dataclass(frozen=True)
class ConsumerEntry:
    """Exposes a consumer (or the blank template) to the add/update forms."""

    consumer: Consumer | ConsumerTemplate
    is_update: bool = False

    @classmethod
    def for_add(cls) -> Self:
        return cls(BLANK_TEMPLATE, is_update=False)

    @classmethod
    def for_update(cls, consumer: Consumer) -> Self:
        return cls(consumer, is_update=True)

    @property
    def consumer_key(self) -> str:
        return self.consumer.key

    @property
    def consumer_name(self) -> str:
        return self.consumer.name

    @property
    def consumer_secret(self) -> str:
        return self.consumer.secret or ""

    @property
    def is_callback_url_set(self) -> bool:
        return self.consumer.callback is not None

    @property
    def callback_url(self) -> str:
        return self.consumer.callback if self.is_callback_url_set else ""
