from abc import ABC, abstractmethod
from typing import Dict, Any


class BaseProcessor(ABC):
    """Abstract base for all simulated payment-method processors."""

    @abstractmethod
    def simulated_details(self, rng=None) -> Dict[str, Any]:
        """
        Build the synthetic, method-specific details recorded on a paid order.
        Illustrative only, never real instrument data.
        """
        pass

    @property
    @abstractmethod
    def method_name(self) -> str:
        pass
