"""Live tab updates over WebSocket.

A client connects to /ws/tabs/{tab_id} and receives the full tab snapshot as JSON
immediately and after every change. When the tab is deleted (or never existed) the
server sends `null` and closes the socket.
"""

import asyncio
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from database import get_db
from utils.tab_store import TabStore


logger = logging.getLogger(__name__)

router = APIRouter(tags=["live"])


@router.websocket("/ws/tabs/{tab_id}")
async def tab_updates(websocket: WebSocket, tab_id: str, db: Session = Depends(get_db)):
    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def on_update(snapshot):
        # Publishers run in worker threads; hand the payload to this socket's loop
        payload = snapshot.model_dump(mode="json") if snapshot is not None else None
        loop.call_soon_threadsafe(queue.put_nowait, payload)

    unsubscribe = TabStore(db).subscribe(tab_id, on_update)
    logger.info(f"Live subscriber connected to tab {tab_id}")

    async def send_updates():
        while True:
            payload = await queue.get()
            await websocket.send_json(payload)
            if payload is None:
                await websocket.close()
                return

    async def wait_for_disconnect():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            return

    sender = asyncio.create_task(send_updates())
    receiver = asyncio.create_task(wait_for_disconnect())
    try:
        done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning(f"Live connection for tab {tab_id} ended with error: {task.exception()}")
    finally:
        unsubscribe()
        logger.info(f"Live subscriber left tab {tab_id}")
