"""
Abstract base class for mailbox processors.
"""

from abc import ABC, abstractmethod


class BaseProcessor(ABC):
    """Abstract processor interface for mail processing pipelines."""

    @abstractmethod
    def process(self) -> dict:
        """
        Run one processing batch.

        Returns:
            Processing statistics dict
        """
        pass
