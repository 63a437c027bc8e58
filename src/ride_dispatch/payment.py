"""Payment gateway seam.

The gateway itself is external; the dispatch engine only needs a callable
that charges an amount for a ride and returns the gateway's transaction id.
"""

import secrets
import string
from collections.abc import Callable

PaymentGateway = Callable[[str, int], str]

_TXN_ALPHABET = string.ascii_lowercase + string.digits


def mock_payment_gateway(ride_id: str, amount: int) -> str:
    """Always-succeeding gateway for local runs and tests."""
    return "txn_" + "".join(secrets.choice(_TXN_ALPHABET) for _ in range(9))
