from typing import Dict, Any
from app.processors.base import BaseProcessor
from app.services.identifiers import transaction_ref


SIMULATED_BANK_NAME = "Sample Bank"


class BankProcessor(BaseProcessor):
    """
    Net banking mock.
    Details: fixed bank name + transaction reference
    """

    @property
    def method_name(self) -> str:
        return "bank"

    def simulated_details(self, rng=None) -> Dict[str, Any]:
        return {
            "bankName": SIMULATED_BANK_NAME,
            "transactionRef": transaction_ref(rng),
        }
