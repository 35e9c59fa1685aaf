from typing import Dict, List

from fastapi import WebSocket

from .session import VoiceSocketSession


class ConnectionManager:
    def __init__(self) -> None:
        self.active_sessions: Dict[str, List[VoiceSocketSession]] = {}

    async def connect(
        self, websocket: WebSocket, user_id: str, language: str
    ) -> VoiceSocketSession:
        await websocket.accept()
        session = VoiceSocketSession(websocket, user_id=user_id, language=language)
        if user_id not in self.active_sessions:
            self.active_sessions[user_id] = []
        self.active_sessions[user_id].append(session)
        return session

    async def disconnect(self, session: VoiceSocketSession) -> None:
        sessions = self.active_sessions.get(session.user_id)
        if sessions and session in sessions:
            sessions.remove(session)
            if not sessions:
                del self.active_sessions[session.user_id]
        await session.close()


manager = ConnectionManager()
