"""Message router — inbound text frames to typed commands to handlers.

Learn: Clients send JSON objects with a "type" field. Two types mean
something:

    {"type": "new_order", "order": {"tableNumber": 5, "items": ["Soup"]}}
    {"type": "update_status", "orderId": 7, "status": "READY"}

Everything else is a silent no-op (logged at debug). Parsing is split in
three outcomes so the caller can apply a different policy to each:

- not JSON / not an object     → MalformedMessageError (log, no reply)
- known type, bad fields       → InvalidCommandError (per-command policy)
- unknown type                 → None (ignored)

Numeric strings ("5") are accepted for tableNumber and orderId; anything
that isn't an integer is rejected rather than stored.
"""

import json
from typing import Any, Awaitable, Callable, Optional, Union

import structlog
from pydantic import BaseModel, Field, ValidationError

from orderline.db.models import OrderStatus
from orderline.events.types import NEW_ORDER, UPDATE_STATUS

logger = structlog.get_logger()


class MalformedMessageError(Exception):
    pass


class InvalidCommandError(Exception):
    def __init__(self, message_type: str, detail: str):
        super().__init__(f"Invalid {message_type} message: {detail}")
        self.message_type = message_type
        self.detail = detail


# ─── Commands ───────────────────────────────────────────


class NewOrderCommand(BaseModel):
    table_number: int = Field(..., gt=0, alias="tableNumber")
    items: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class UpdateStatusCommand(BaseModel):
    order_id: int = Field(..., alias="orderId")
    status: OrderStatus

    model_config = {"populate_by_name": True}


Command = Union[NewOrderCommand, UpdateStatusCommand]


def parse_command(raw: str | bytes) -> Optional[Command]:
    """Parse one inbound frame. See module docstring for the three outcomes."""
    try:
        msg = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedMessageError(f"Not valid JSON: {e}") from e
    if not isinstance(msg, dict):
        raise MalformedMessageError("Message must be a JSON object")

    message_type = msg.get("type")
    try:
        if message_type == NEW_ORDER:
            return NewOrderCommand.model_validate(msg.get("order") or {})
        if message_type == UPDATE_STATUS:
            return UpdateStatusCommand.model_validate(msg)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidCommandError(message_type, errors) from e
    return None


# ─── Dispatch ───────────────────────────────────────────

Handler = Callable[[Any, Any], Awaitable[None]]


class MessageRouter:
    """Maps command classes to async handlers.

    Learn: The hub registers its handlers once at startup:

        router.on(NewOrderCommand, hub.handle_new_order)

    dispatch() parses a frame and awaits the matching handler, so each
    frame is fully processed (store write + broadcast) before the caller
    reads the next one from the same connection.
    """

    def __init__(self):
        self._handlers: dict[type, Handler] = {}
        self._invalid_handler: Optional[Handler] = None

    def on(self, command_type: type, handler: Handler) -> None:
        self._handlers[command_type] = handler

    def on_invalid(self, handler: Handler) -> None:
        """Handler for known message types whose fields failed validation."""
        self._invalid_handler = handler

    async def dispatch(self, connection: Any, raw: str | bytes) -> bool:
        """Route one frame. Returns True if a handler ran.

        Malformed frames and unknown types are logged and dropped; they
        never raise out of here.
        """
        try:
            command = parse_command(raw)
        except MalformedMessageError as e:
            logger.warning("orderline.ws.malformed_message", error=str(e))
            return False
        except InvalidCommandError as e:
            logger.warning(
                "orderline.ws.invalid_command",
                message_type=e.message_type,
                detail=e.detail,
            )
            if self._invalid_handler is not None:
                await self._invalid_handler(connection, e)
                return True
            return False

        if command is None:
            logger.debug("orderline.ws.unknown_message_type")
            return False

        handler = self._handlers.get(type(command))
        if handler is None:
            logger.debug(
                "orderline.ws.unhandled_command", command=type(command).__name__
            )
            return False
        await handler(connection, command)
        return True
