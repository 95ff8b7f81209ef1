from typing import Dict, Any
from app.processors.base import BaseProcessor
from app.services.identifiers import transaction_ref


class CashProcessor(BaseProcessor):
    """
    Cash mock, also the fallback for unspecified methods.
    Details: transaction reference only
    """

    @property
    def method_name(self) -> str:
        return "cash"

    def simulated_details(self, rng=None) -> Dict[str, Any]:
        return {"transactionRef": transaction_ref(rng)}
