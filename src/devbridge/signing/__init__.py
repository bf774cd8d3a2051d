"""Transaction signing.

- Signer: contract the core invokes without touching key material
- KeypairSigner: in-memory keypair (development / hot wallet)
"""

from devbridge.signing.base import Signer, SigningDeclinedError
from devbridge.signing.local import KeypairSigner

__all__ = [
    "Signer",
    "SigningDeclinedError",
    "KeypairSigner",
]
