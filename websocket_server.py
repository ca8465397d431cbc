#!/usr/bin/env python3
"""
WebSocket Server for Live Price Updates
Pushes the cached market prices to connected clients every PRICE_PUSH_INTERVAL seconds
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from backend.services.market_service import market_service
from config import get_config

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PriceUpdateServer:
    def __init__(self, price_source=None):
        self.clients: Set = set()
        self.subscriptions: Dict = {}  # websocket -> set of coin ids (empty = all)
        self.latest_prices: List[Dict] = []
        self.price_source = price_source or market_service.get_prices

    async def register(self, websocket):
        """Register a new client connection"""
        self.clients.add(websocket)
        self.subscriptions[websocket] = set()
        logger.info(f"Client connected. Total clients: {len(self.clients)}")

        # Send current state to new client
        await self.send_initial_state(websocket)

    async def unregister(self, websocket):
        """Unregister a client connection"""
        self.clients.discard(websocket)
        self.subscriptions.pop(websocket, None)
        logger.info(f"Client disconnected. Total clients: {len(self.clients)}")

    def prices_for(self, websocket) -> List[Dict]:
        wanted = self.subscriptions.get(websocket) or set()
        if not wanted:
            return self.latest_prices
        return [p for p in self.latest_prices if p.get('id') in wanted or (p.get('symbol') or '').lower() in wanted]

    async def send_initial_state(self, websocket):
        """Send current prices to a new client"""
        if not self.latest_prices:
            await self.refresh_prices()
        try:
            await websocket.send(json.dumps({
                'type': 'initial_state',
                'prices': self.prices_for(websocket),
                'timestamp': _now()
            }))
        except ConnectionClosed:
            pass

    async def refresh_prices(self) -> List[Dict]:
        """Reload prices off the event loop (the market service does blocking HTTP)"""
        try:
            self.latest_prices = await asyncio.to_thread(self.price_source)
        except Exception as e:
            logger.error(f"Error refreshing prices: {e}")
        return self.latest_prices

    async def broadcast_prices(self):
        """Send each client the prices it subscribed to"""
        if not self.clients:
            return

        disconnected_clients = set()
        for client in list(self.clients):
            message = json.dumps({
                'type': 'price_update',
                'prices': self.prices_for(client),
                'timestamp': _now()
            })
            try:
                await client.send(message)
            except ConnectionClosed:
                disconnected_clients.add(client)
            except Exception as e:
                logger.error(f"Error broadcasting to client: {e}")
                disconnected_clients.add(client)

        # Clean up disconnected clients
        for client in disconnected_clients:
            await self.unregister(client)

    async def handle_client(self, websocket):
        """Handle individual client connection"""
        await self.register(websocket)

        try:
            async for message in websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    logger.error(f"Invalid JSON received: {message}")
                    continue
                await self.handle_client_message(websocket, data)

        except ConnectionClosed:
            pass
        finally:
            await self.unregister(websocket)

    async def handle_client_message(self, websocket, data: Dict):
        """Handle messages from clients"""
        message_type = data.get('type') if isinstance(data, dict) else None

        if message_type == 'ping':
            await websocket.send(json.dumps({'type': 'pong', 'timestamp': _now()}))

        elif message_type == 'subscribe':
            coins = data.get('coins') or []
            if not isinstance(coins, list):
                await websocket.send(json.dumps({
                    'type': 'error',
                    'message': 'coins must be a list of coin ids'
                }))
                return
            self.subscriptions[websocket] = {str(c).lower() for c in coins if c}
            await websocket.send(json.dumps({
                'type': 'subscription_confirmed',
                'coins': sorted(self.subscriptions[websocket]),
            }))

        elif message_type == 'unsubscribe':
            self.subscriptions[websocket] = set()
            await websocket.send(json.dumps({'type': 'subscription_confirmed', 'coins': []}))

        elif message_type == 'get_prices':
            await websocket.send(json.dumps({
                'type': 'price_update',
                'prices': self.prices_for(websocket),
                'timestamp': _now()
            }))

        else:
            await websocket.send(json.dumps({
                'type': 'error',
                'message': f'unknown message type: {message_type}'
            }))

    async def push_loop(self, interval: Optional[int] = None):
        interval = interval or get_config().PRICE_PUSH_INTERVAL
        while True:
            await self.refresh_prices()
            await self.broadcast_prices()
            await asyncio.sleep(interval)


# Global instance
price_update_server = PriceUpdateServer()


async def start_websocket_server():
    """Start the WebSocket server"""
    settings = get_config()
    async with websockets.serve(price_update_server.handle_client, settings.WS_HOST, settings.WS_PORT):
        logger.info(f"WebSocket server started on ws://{settings.WS_HOST}:{settings.WS_PORT}")
        await price_update_server.push_loop()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    asyncio.run(start_websocket_server())
