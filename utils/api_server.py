"""
FastAPI server for Play Scope.

Provides REST API endpoints for child profiles, session submission and
caregiver reports. The server's SQLite database is the shared remote store;
its JSON cache file is the local cache for sessions recorded on this host.
"""

import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from reporting.aggregator import build_child_report
from sessions.models import ChildProfile, SessionRecord, SessionRecordError, normalize_child_id
from sessions.reconciliation import SessionReconciler
from sessions.stores import LocalSessionCache, SessionStore
from utils.config_loader import get_nested_config, load_config
from utils.session_database import ScreeningDatabase

logger = logging.getLogger(__name__)


class ProfileIn(BaseModel):
    """Profile payload for PUT /children/{child_id}."""
    age: Optional[int] = Field(default=None, ge=0, le=18)


def create_app(
    config: Optional[Dict] = None,
    database: Optional[ScreeningDatabase] = None,
    local_cache: Optional[SessionStore] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Configuration dict (loaded from the default file if None)
        database: Remote session/profile store (built from config if None)
        local_cache: Local session cache (built from config if None)

    Returns:
        FastAPI application
    """
    if config is None:
        config = load_config()
    if database is None:
        database = ScreeningDatabase(get_nested_config(config, 'storage.database_path', 'data/screening/play_scope.db'))
    if local_cache is None:
        local_cache = LocalSessionCache(get_nested_config(config, 'storage.local_cache_path', 'data/cache/game_sessions.json'))

    reconciler = SessionReconciler(local_cache, database, database, config)

    app = FastAPI(
        title="Play Scope API",
        description="REST API for screening mini-game sessions and caregiver reports",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_nested_config(config, 'api.cors_origins', ["http://localhost:5173"]),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """API root endpoint."""
        return {
            "message": "Play Scope API",
            "version": "1.0.0",
            "endpoints": [
                "/children",
                "/children/{child_id}",
                "/children/{child_id}/sessions",
                "/children/{child_id}/report",
                "/statistics"
            ]
        }

    @app.get("/children")
    def list_children() -> List[Dict]:
        """List known children with session counts."""
        return database.list_children()

    @app.put("/children/{child_id}")
    def save_profile(child_id: str, body: ProfileIn) -> Dict:
        """
        Create or update a child profile.

        Args:
            child_id: Child name (case-insensitive)
            body: Profile fields

        Returns:
            Stored profile
        """
        try:
            profile = ChildProfile.create(child_id, age=body.age)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        database.save(profile)
        return database.get(profile.name).to_dict()

    @app.get("/children/{child_id}")
    def get_profile(child_id: str) -> Dict:
        """Get a child profile."""
        profile = database.get(child_id)
        if profile is None:
            raise HTTPException(status_code=404, detail=f"Child {normalize_child_id(child_id)} not found")
        return profile.to_dict()

    @app.get("/children/{child_id}/sessions")
    def get_sessions(child_id: str) -> Dict:
        """
        Get the reconciled session list for a child.

        Returns:
            Sessions (most recent first) and source availability flags
        """
        result = reconciler.reconcile(child_id)
        return {
            "child_id": result.child_id,
            "sessions": [s.to_dict() for s in result.sessions],
            "local_available": result.local_available,
            "remote_available": result.remote_available,
            "duplicates_dropped": result.duplicates_dropped,
        }

    @app.post("/children/{child_id}/sessions", status_code=201)
    def submit_session(child_id: str, body: Dict[str, Any]) -> Dict:
        """
        Submit one finished session in the mini-game wire format.

        The path child id is authoritative over any 'kid' in the body.
        """
        data = dict(body)
        data['kid'] = normalize_child_id(child_id)
        try:
            record = SessionRecord.from_dict(data)
        except SessionRecordError as e:
            raise HTTPException(status_code=422, detail=str(e))

        database.append_one(record.child_id, record)
        return record.to_dict()

    @app.get("/children/{child_id}/report")
    def get_report(child_id: str) -> Dict:
        """
        Build the caregiver report for a child.

        Missing profiles are not an error: age-normed metrics are simply
        reported as unavailable.
        """
        result = reconciler.reconcile(child_id)
        profile = reconciler.load_profile(child_id)
        report = build_child_report(
            result.child_id,
            result.sessions,
            profile=profile,
            config=config,
            local_available=result.local_available,
            remote_available=result.remote_available,
        )
        return report.to_dict()

    @app.get("/statistics")
    def get_statistics() -> Dict:
        """Get aggregate statistics across all children."""
        return database.get_statistics()

    return app


def start_server(config: Optional[Dict] = None, host: Optional[str] = None, port: Optional[int] = None):
    """
    Start the API server.

    Args:
        config: Configuration dict
        host: Host address (defaults to api.host)
        port: Port number (defaults to api.port)
    """
    if config is None:
        config = load_config()
    host = host or get_nested_config(config, 'api.host', '127.0.0.1')
    port = port or get_nested_config(config, 'api.port', 8000)

    app = create_app(config)
    logger.info(f"Starting Play Scope API server at http://{host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    start_server()
