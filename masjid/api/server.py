"""
FastAPI server for the masjid API. Run with run_api_server(app) in a background thread.
Central endpoints: GET /api/components, GET /api/tasks. Per-plugin routes are mounted
from masjid.plugins.<package>.api (get_router(masjid_app)) under /api/components/<package>/.
Docs when enabled: http://<host>:<port>/docs
"""
import importlib
import logging
import pkgutil
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from masjid.core.store import NotFoundError, StoreError
from masjid.core.validation import WriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Keys to exclude from component config in API (secrets)
_CONFIG_SECRET_KEYS = frozenset(
    {"api_key", "password", "token", "secret", "credentials", "client_secret"}
)


class ActionResult(BaseModel):
    """Response for admin writes."""
    id: str
    message: str
    is_published: Optional[bool] = None


def _safe_component_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return config with secret keys omitted."""
    if not config:
        return {}
    return {k: v for k, v in config.items() if k.lower() not in _CONFIG_SECRET_KEYS}


def _serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Serialize datetime to ISO string (UTC)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def require_component(masjid_app: Any, name: str):
    """Return the mounted component or answer 503 when it is disabled."""
    component = masjid_app.get_component(name)
    if component is None:
        raise HTTPException(status_code=503, detail=f"{name} is not enabled")
    return component


def store_call(fn: Callable[[], T], failure_message: str) -> T:
    """Run an admin read/write and map store failures to HTTP errors."""
    try:
        return fn()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e) or "Not found") from e
    except WriteError as e:
        raise HTTPException(status_code=502, detail=str(e) or failure_message) from e
    except StoreError as e:
        logger.error(f"{failure_message}: {e}")
        raise HTTPException(status_code=502, detail=failure_message) from e


def create_app(masjid_app: Any) -> FastAPI:
    """Create FastAPI app with routes that use the given MasjidApp instance."""
    app = FastAPI(title="Masjid API", description="Prayer times, announcements, events and contacts")

    @app.get("/api/components")
    def list_components() -> List[Dict[str, Any]]:
        """List registered components with enabled state, cache state and safe config."""
        components_data = []
        comp_config = masjid_app.config.data.get("components") or {}
        for name in masjid_app.plugin_manager.components:
            config = comp_config.get(name) or {}
            enabled = bool(config.get("enable", False)) if isinstance(config, dict) else False
            component = masjid_app.get_component(name)
            status = component.status() if component is not None else {"state": "unmounted"}
            components_data.append({
                "name": name,
                "enabled": enabled,
                "state": status["state"],
                "error": status.get("error"),
                "last_updated": _serialize_datetime(status.get("last_updated")),
                "config": _safe_component_config(config) if isinstance(config, dict) else {},
            })
        return components_data

    @app.get("/api/tasks")
    def list_tasks() -> Dict[str, Any]:
        """List active in-memory timers."""
        active_timers = masjid_app.task_manager.get_active_timers()
        active_list = [
            {"name": t["name"], "next_run_at": _serialize_datetime(t["next_run_at"])}
            for t in active_timers
        ]
        return {"active_timers": active_list}

    # Mount per-plugin API routers from masjid.plugins.<name>.api (get_router(masjid_app))
    try:
        plugins_pkg = importlib.import_module("masjid.plugins")
        for _mod, name, is_pkg in pkgutil.iter_modules(plugins_pkg.__path__):
            if not is_pkg:
                continue
            try:
                api_module = importlib.import_module(f"masjid.plugins.{name}.api")
            except ImportError:
                continue
            if not hasattr(api_module, "get_router") or not callable(api_module.get_router):
                continue
            try:
                router = api_module.get_router(masjid_app)
                if router is not None:
                    app.include_router(router, prefix=f"/api/components/{name}")
            except Exception as e:
                logger.warning(f"Failed to mount API router for plugin {name}: {e}", exc_info=True)
    except Exception as e:
        logger.warning(f"Plugin API discovery failed: {e}", exc_info=True)

    return app


def run_api_server(masjid_app: Any) -> Optional[threading.Thread]:
    """
    Start the API server in a daemon thread if api.enabled is true.
    Reads api.host (default 127.0.0.1) and api.port (default 8765) from config.
    """
    api_config = masjid_app.config.data.get("api") or {}
    enabled = api_config.get("enabled", False)
    if not enabled:
        logger.info("API server not started: set api.enabled to true in your config file to enable.")
        return None
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(masjid_app)

    def run_uvicorn():
        try:
            import uvicorn
            logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
            uvicorn.run(fastapi_app, host=host, port=port)
        except Exception as e:
            logger.exception(f"API server thread failed: {e}")

    thread = threading.Thread(target=run_uvicorn, daemon=True)
    thread.start()
    logger.info("API server thread started.")
    return thread
