import secrets
from typing import Dict, Any
from app.processors.base import BaseProcessor
from app.services.identifiers import transaction_ref


class CardProcessor(BaseProcessor):
    """
    Card mock.
    Details: random 4-digit "last 4" (1000-9999) + transaction reference
    """

    @property
    def method_name(self) -> str:
        return "card"

    def simulated_details(self, rng=None) -> Dict[str, Any]:
        rng = rng or secrets.SystemRandom()
        return {
            "cardLast4": str(rng.randint(1000, 9999)),
            "transactionRef": transaction_ref(rng),
        }
