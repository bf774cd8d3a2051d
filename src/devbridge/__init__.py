"""devbridge - devnet balance gate, simulated bridge and sweep transfer.

Entry points for presentation:
- BridgeController.start_simulated_workflow
- BridgeController.execute_transfer
"""

from devbridge.controller import BridgeController, ControlState, TransferOutcome
from devbridge.eligibility import EligibilityDecision, TransferRequest, validate
from devbridge.stages import Stage

__version__ = "0.1.0"

__all__ = [
    "BridgeController",
    "ControlState",
    "TransferOutcome",
    "EligibilityDecision",
    "TransferRequest",
    "validate",
    "Stage",
]
