"""Router module for trade route quoting and transaction composition.

Components:
- QuoteRequestBuilder: validates fixed-input / fixed-output quote inputs
- RouteClient: volume, supported coins and trade route quotes
- TransactionComposer: fresh trade transactions and appended trade legs
- EventStream: ordered stream of executed trades
- Router: single provider object wiring the above to one transport
"""

from suiroute.router.builder import MAX_EXTERNAL_FEE_PERCENTAGE, QuoteRequestBuilder
from suiroute.router.cancel import CancelToken, run_cancellable
from suiroute.router.client import RouteClient
from suiroute.router.composer import AddTradeResult, TransactionComposer
from suiroute.router.events import EventStream
from suiroute.router.provider import Router
from suiroute.router.transport import HttpTransport, RouterTransport

__all__ = [
    # Provider
    "Router",
    # Components
    "QuoteRequestBuilder",
    "RouteClient",
    "TransactionComposer",
    "AddTradeResult",
    "EventStream",
    # Transport
    "HttpTransport",
    "RouterTransport",
    "CancelToken",
    "run_cancellable",
    # Constants
    "MAX_EXTERNAL_FEE_PERCENTAGE",
]
