"""
Polls the portal contract for PathzChoosed events and relays them to
connected WebSocket clients.
"""

import asyncio
from typing import Any, Dict, List, Optional

from loguru import logger

from pathz_api.blockchain.service import ContractReader
from pathz_api.config import Settings
from pathz_api.realtime import BroadcastDispatcher, EncodingError

EVENT_NAME = "PathzChoosed"


def event_payload(log: Dict[str, Any]) -> Dict[str, Any]:
    args = log["args"]
    return {
        "type": EVENT_NAME,
        "storyId": int(args["pathStoryNumber"]),
        "letter": args["letterChoosed"],
        "pathzId": int(args["pathzID"]),
        "blockNumber": int(log["blockNumber"]),
    }


class ContractEventWatcher:
    def __init__(self, settings: Settings, dispatcher: BroadcastDispatcher, reader: ContractReader):
        self.settings = settings
        self.dispatcher = dispatcher
        self.reader = reader
        self.network = settings.alchemy_network
        self.last_block: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    def poll_once(self) -> List[Dict[str, Any]]:
        """Fetch events mined since the last poll. Blocking, run it off the event loop."""
        head = self.reader.block_number(self.network)
        if self.last_block is None:
            self.last_block = head
            return []
        if head <= self.last_block:
            return []

        event = getattr(self.reader.portal(self.network).events, EVENT_NAME)
        logs = event.get_logs(from_block=self.last_block + 1, to_block=head)
        self.last_block = head
        return [event_payload(log) for log in logs]

    async def relay(self, payloads: List[Dict[str, Any]]) -> None:
        for payload in payloads:
            logger.info(f"Received {EVENT_NAME} event: {payload}")
            try:
                await self.dispatcher.broadcast(payload)
            except EncodingError as e:
                logger.error(f"Dropping {EVENT_NAME} event at block {payload.get('blockNumber')}: {e}")

    async def run(self) -> None:
        logger.info(f"Watching {EVENT_NAME} on {self.network} every {self.settings.watcher_poll_interval}s")
        while True:
            try:
                payloads = await asyncio.to_thread(self.poll_once)
                await self.relay(payloads)
            except Exception as e:
                logger.error(f"Event watcher poll failed: {e}")
            await asyncio.sleep(self.settings.watcher_poll_interval)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Event watcher stopped")
