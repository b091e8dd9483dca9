"""
FastAPI WebSocket server for Menteur rooms.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from ..errors import INTERNAL_ERROR, INVALID_EVENT
from ..rooms import RoomCoordinator
from ..rules import RuleConfig, default_rules
from ..scheduler import AsyncioScheduler
from .events import OutboundEvent, create_error_event, parse_inbound_event

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Manages WebSocket connections and outbound delivery.

    Each connection gets its own queue drained by a writer task, so events
    produced synchronously (including from timer callbacks) keep their order
    per recipient without the producer awaiting the socket.
    """

    def __init__(self):
        self.connections: Dict[str, WebSocket] = {}
        self.queues: Dict[str, asyncio.Queue] = {}
        self.writers: Dict[str, asyncio.Task] = {}

    def connect(self, connection_id: str, websocket: WebSocket):
        queue: asyncio.Queue = asyncio.Queue()
        self.connections[connection_id] = websocket
        self.queues[connection_id] = queue
        self.writers[connection_id] = asyncio.create_task(self._writer(connection_id, websocket, queue))
        logger.info(f"Connection {connection_id} opened")

    def disconnect(self, connection_id: str):
        self.connections.pop(connection_id, None)
        self.queues.pop(connection_id, None)
        writer = self.writers.pop(connection_id, None)
        if writer:
            writer.cancel()
        logger.info(f"Connection {connection_id} closed")

    def send(self, connection_ids: List[str], event: OutboundEvent):
        """Queue an event for each connection; unknown ids are skipped."""
        payload = orjson.dumps(event.model_dump(mode="json")).decode()
        for connection_id in connection_ids:
            queue = self.queues.get(connection_id)
            if queue is not None:
                queue.put_nowait(payload)

    async def _writer(self, connection_id: str, websocket: WebSocket, queue: asyncio.Queue):
        while True:
            payload = await queue.get()
            try:
                await websocket.send_text(payload)
            except Exception as e:
                logger.error(f"Error sending to {connection_id}: {e}")
                return

    def __len__(self) -> int:
        return len(self.connections)


def create_app(rules: RuleConfig = default_rules, coordinator: Optional[RoomCoordinator] = None) -> FastAPI:
    """Build the FastAPI app with its own connection manager and room coordinator."""
    app = FastAPI(title="Menteur Game Engine", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    manager = ConnectionManager()
    if coordinator is None:
        coordinator = RoomCoordinator(AsyncioScheduler(), rules=rules)
    coordinator.sink = manager.send

    app.state.manager = manager
    app.state.coordinator = coordinator

    @app.get("/")
    async def root():
        return {"message": "Menteur Game API", "version": "1.0.0", "variant": coordinator.rules.variant}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "rooms": len(coordinator.registry),
            "connections": len(manager)
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Main WebSocket endpoint; the connection id doubles as the player id."""
        await websocket.accept()
        connection_id = uuid.uuid4().hex
        manager.connect(connection_id, websocket)

        try:
            while True:
                raw_data = await websocket.receive_text()

                try:
                    event = parse_inbound_event(orjson.loads(raw_data))
                except ValueError as e:
                    # orjson.JSONDecodeError is a ValueError
                    manager.send([connection_id], create_error_event(INVALID_EVENT, str(e)))
                    continue

                try:
                    coordinator.dispatch(connection_id, event)
                except Exception as e:
                    logger.exception(f"Error handling {event.type.value} from {connection_id}: {e}")
                    manager.send([connection_id], create_error_event(INTERNAL_ERROR, "Internal server error"))

        except WebSocketDisconnect:
            logger.info(f"WebSocket {connection_id} disconnected")
        finally:
            coordinator.disconnect(connection_id)
            manager.disconnect(connection_id)

    return app
