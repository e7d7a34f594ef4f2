"""
Websocket listener for PumpSwap pool accounts (programSubscribe)

Pushes (address, raw_bytes) for every pool account the RPC node reports as
created or changed.  Runs its own asyncio loop; start it in a thread:

  listener = PoolListener(on_account=handle_pool)
  threading.Thread(target=listener.run, daemon=True).start()
"""
import asyncio
import base64
import json
import threading
from typing import Callable, Dict, List, Optional

import websockets

from pumpwatch.config import config
from pumpwatch.pool_decoder import pool_filters


RECONNECT_DELAY_SEC = 5


class PoolListener:
    def __init__(self, on_account: Callable[[str, bytes], None],
                 ws_url: str = None, program_id: str = None,
                 filters: Optional[List[Dict]] = None):
        self.uri = ws_url or config.WS_ENDPOINT
        self.program_id = program_id or config.PROGRAM_ID
        self.filters = filters if filters is not None else pool_filters(config.POOL_ACCOUNT_SIZE)
        self.on_account = on_account
        self._stop_event = threading.Event()
        self.subscription_id = None

    def stop(self):
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def subscribe_request(self) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "programSubscribe",
            "params": [
                self.program_id,
                {
                    "encoding": "base64",
                    "commitment": "confirmed",
                    "filters": self.filters,
                },
            ],
        }

    def handle_message(self, raw_msg: str) -> bool:
        """Dispatch one websocket message. Returns True if a pool was pushed."""
        try:
            msg = json.loads(raw_msg)
        except ValueError as e:
            print(f"[WS] ⚠ Unparseable message: {e}")
            return False

        if not isinstance(msg, dict):
            return False

        # Subscription confirmation
        if msg.get('id') == 1 and 'result' in msg:
            self.subscription_id = msg['result']
            print(f"[WS] ✓ Subscribed to pool accounts (id {self.subscription_id})")
            return False

        if msg.get('method') != 'programNotification':
            return False

        value = msg.get('params', {}).get('result', {}).get('value', {})
        address = value.get('pubkey')
        data = value.get('account', {}).get('data', [])
        if not address or not data:
            return False
        try:
            raw = base64.b64decode(data[0] if isinstance(data, list) else data)
        except (TypeError, ValueError) as e:
            print(f"[WS] ⚠ Bad account data for {address}: {e}")
            return False

        try:
            self.on_account(address, raw)
        except Exception as e:
            print(f"[WS] ⚠ Pool handler failed for {address}: {e}")
            return False
        return True

    async def _connect(self):
        async with websockets.connect(self.uri) as ws:
            await ws.send(json.dumps(self.subscribe_request()))
            async for raw_msg in ws:
                if self.stopped:
                    break
                self.handle_message(raw_msg)

    async def _listen(self):
        while not self.stopped:
            try:
                await self._connect()
            except Exception as e:
                print(f"[WS] ✗ Connection error: {e}")
            if not self.stopped:
                await asyncio.sleep(RECONNECT_DELAY_SEC)

    def run(self):
        asyncio.run(self._listen())
