"""Subscription to executed router trades."""

import logging
from typing import AsyncIterator, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from suiroute.contracts.events import TradeEvent, TradeEventsFilter
from suiroute.errors import ServerError, ValidationError
from suiroute.router.cancel import CancelToken
from suiroute.router.transport import RouterTransport

logger = logging.getLogger(__name__)


class EventStream:
    """Lazy, time-ascending stream of trade events.

    Reconnection and backpressure belong to the transport; a stream that
    ends is not resumed here. Use the filter's cursor to continue.
    """

    def __init__(self, transport: RouterTransport):
        self.transport = transport

    def get_trade_events(
        self,
        filter: Optional[Union[TradeEventsFilter, dict]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> AsyncIterator[TradeEvent]:
        """Stream trade events matching ``filter`` until the server closes the stream.

        The filter is validated here; nothing is requested until iteration starts.

        Raises:
            ValidationError: If ``filter`` is invalid (raised immediately)
            ServerError: On a malformed or out-of-order event (raised while iterating)
        """
        if filter is None:
            filter = TradeEventsFilter()
        elif isinstance(filter, dict):
            try:
                filter = TradeEventsFilter.model_validate(filter)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid trade event filter: {e}") from e

        return self._iter_trade_events(filter, cancel_token)

    async def _iter_trade_events(
        self,
        filter: TradeEventsFilter,
        cancel_token: Optional[CancelToken],
    ) -> AsyncIterator[TradeEvent]:
        last_timestamp: Optional[int] = None
        count = 0

        stream = self.transport.fetch_event_stream(
            "events/trade", filter.to_wire(), cancel_token=cancel_token
        )
        try:
            async for raw in stream:
                try:
                    event = TradeEvent.model_validate(raw)
                except PydanticValidationError as e:
                    raise ServerError(f"Invalid trade event: {e}") from e

                if last_timestamp is not None and event.timestamp < last_timestamp:
                    raise ServerError(
                        f"Trade event {event.txn_digest} at {event.timestamp} "
                        f"arrived after an event at {last_timestamp}"
                    )
                last_timestamp = event.timestamp
                count += 1
                yield event
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
            logger.debug(f"Trade event stream finished after {count} event(s)")
