# realtime_api/api/realtime.py

from fastapi import APIRouter, Depends, WebSocket

from realtime_api.api.dependencies import get_socket_server
from realtime_api.infrastructure.socket_server import SocketServer

router = APIRouter()


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket, socket_server: SocketServer = Depends(get_socket_server)
):
    await socket_server.serve(websocket)
