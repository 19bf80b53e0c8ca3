"""
ESP32 WebSocket light.

Classes:
  - Connection : Handles discovery + connection + send.
  - Esp32Light : LightPort sending light commands as JSON to the ESP32.
"""

import asyncio
import json
import os
import socket
import time
from typing import Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from pomolight.ports.light_port import LightPort
from pomolight.utils import BASE_DIR
from pomolight.utils import custom_exception as ce
from pomolight.utils.logging_handler import setup_logger

connection_logger = setup_logger("connection", console=False)
sender_logger = setup_logger("sender", console=False)

ESP32_MDNS = "esp32.local"
WS_PATH = "/ws"
UDP_PORT = 4210
LAST_IP_FILE = os.path.join(BASE_DIR, "last_esp32_ip.txt")
CONNECT_TIMEOUT = 3
RECONNECT_INTERVAL = 10.0


# ------------------------------
# Connection
# ------------------------------
class Connection:
    """Responsible for establishing and managing the WebSocket connection."""

    def __init__(self, host: Optional[str] = None, udp_timeout: float = 5):
        self.host = host
        self.udp_timeout = udp_timeout
        self.ws = None

    @property
    def connected(self) -> bool:
        return self.ws is not None

    async def connect(self):
        ws = (
            await self._try_host()
            or await self._try_mdns()
            or await self._try_last_ip()
            or await self._try_udp()
        )
        if not ws:
            raise ce.DeviceDisconnected("Could not connect to ESP32")
        self.ws = ws

    async def send(self, payload: str):
        if not self.ws:
            raise ce.DeviceDisconnected("Not connected")
        try:
            await self.ws.send(payload)
        except (ConnectionClosed, OSError) as e:
            self.ws = None
            raise ce.DeviceDisconnected(f"Connection lost: {e}") from e

    async def close(self):
        if self.ws:
            await self.ws.close()
            self.ws = None

    # --- private helpers ---
    async def _try_host(self):
        if not self.host:
            return None
        return await self._try_connect(f"ws://{self.host}{WS_PATH}", "configured host")

    async def _try_mdns(self):
        uri = f"ws://{ESP32_MDNS}{WS_PATH}"
        return await self._try_connect(uri, "mDNS")

    async def _try_last_ip(self):
        if not os.path.exists(LAST_IP_FILE):
            return None
        with open(LAST_IP_FILE, "r") as f:
            last_ip = f.read().strip()
        if not last_ip:
            return None
        uri = f"ws://{last_ip}{WS_PATH}"
        return await self._try_connect(uri, "last-known IP")

    async def _try_udp(self):
        loop = asyncio.get_running_loop()
        ip = await loop.run_in_executor(None, self._discover_via_udp, self.udp_timeout)
        if not ip:
            return None
        uri = f"ws://{ip}{WS_PATH}"
        ws = await self._try_connect(uri, "UDP discovery")
        if ws:
            with open(LAST_IP_FILE, "w") as f:
                f.write(ip)
        return ws

    async def _try_connect(self, uri, label):
        try:
            ws = await asyncio.wait_for(websockets.connect(uri), timeout=CONNECT_TIMEOUT)
        except (OSError, asyncio.TimeoutError, WebSocketException):
            connection_logger.debug(f"[client] no ESP32 via {label}: {uri}")
            return None
        connection_logger.info("=" * 50)
        connection_logger.info(f"[client] connected via {label}: {uri} ")
        connection_logger.info("=" * 50)
        return ws

    def _discover_via_udp(self, timeout=5):
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        try:
            sock.bind(("", UDP_PORT))
            sock.settimeout(timeout)
            start = time.time()
            while True:
                remaining = timeout - (time.time() - start)
                if remaining <= 0:
                    break
                try:
                    data, _ = sock.recvfrom(1024)
                except socket.timeout:
                    break
                text = data.decode("utf-8", errors="ignore")
                try:
                    j = json.loads(text)
                    if isinstance(j, dict) and "ip" in j:
                        return j["ip"]
                except json.JSONDecodeError:
                    if "ip=" in text:
                        return text.split("ip=")[1].split()[0].strip(",}")
        except OSError as e:
            connection_logger.warning(f"[client] UDP discovery failed: {e}")
        finally:
            sock.close()
        return None


# ------------------------------
# Light
# ------------------------------
class Esp32Light(LightPort):
    """Sends light commands to the ESP32.

    Example payloads:
      {"mode": "light", "action": "solid", "color": "red"}
      {"mode": "light", "action": "pulse", "color": "green", "rate": 500}
      {"mode": "light", "action": "off"}

    While the connection is down every command raises DeviceDisconnected
    straight away. Discovery runs as a background task, at most one at a
    time and at most once per ``reconnect_interval`` seconds.
    """

    def __init__(self, connection: Connection, reconnect_interval: float = RECONNECT_INTERVAL):
        self.conn = connection
        self.reconnect_interval = reconnect_interval
        self._last_attempt: Optional[float] = None
        self._reconnecting: Optional[asyncio.Task] = None

    async def set_solid(self, color: str) -> None:
        await self._send({"mode": "light", "action": "solid", "color": color})

    async def set_pulsing(self, color: str, rate_ms: int) -> None:
        await self._send({"mode": "light", "action": "pulse", "color": color, "rate": rate_ms})

    async def off(self) -> None:
        await self._send({"mode": "light", "action": "off"})

    async def close(self) -> None:
        if self._reconnecting is not None and not self._reconnecting.done():
            self._reconnecting.cancel()
            try:
                await self._reconnecting
            except asyncio.CancelledError:
                pass
        await self.conn.close()

    async def _send(self, obj: dict):
        if not self.conn.connected:
            self._start_reconnect()
            raise ce.DeviceDisconnected("ESP32 offline, reconnecting in the background")
        sender_logger.debug(f"[ESP32] {obj}")
        await self.conn.send(json.dumps(obj))

    def _start_reconnect(self) -> None:
        if self._reconnecting is not None and not self._reconnecting.done():
            return
        now = time.monotonic()
        if self._last_attempt is not None and now - self._last_attempt < self.reconnect_interval:
            return
        self._last_attempt = now
        self._reconnecting = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        try:
            await self.conn.connect()
        except ce.DeviceDisconnected as e:
            connection_logger.warning(f"[client] {e}")
            return
        connection_logger.info("[client] ESP32 reconnected")
