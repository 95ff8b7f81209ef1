from typing import Dict, Any
from app.processors.base import BaseProcessor
from app.services.identifiers import transaction_ref


SIMULATED_UPI_ID = "user@upi"


class UpiProcessor(BaseProcessor):
    """
    UPI mock.
    Details: synthetic UPI handle + transaction reference
    """

    @property
    def method_name(self) -> str:
        return "upi"

    def simulated_details(self, rng=None) -> Dict[str, Any]:
        return {
            "upiId": SIMULATED_UPI_ID,
            "transactionRef": transaction_ref(rng),
        }
