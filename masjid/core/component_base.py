from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
import logging

from masjid.core.live_cache import LiveData

DEFAULT_POLL_SECONDS = 30


class LiveComponent(ABC):
    """
    A headless view over one collection. mount() opens the change subscription and performs the
    initial fetch; destroy() releases the subscription. The cache lives exactly as long as the component.

    Stores without a push feed (supports_push False) only report this client's own writes, so the
    component also reloads on a repeating timer every poll_seconds.
    """

    def __init__(self, app, config: Dict[str, Any]):
        self.config = config or {}
        self.app = app
        self.logger = logging.getLogger(self.name)
        self.live: Optional[LiveData] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the component"""
        pass

    @property
    def store(self):
        return self.app.store

    @property
    def poll_task_name(self) -> str:
        return f"{self.name} poll"

    @property
    def poll_seconds(self) -> float:
        return float(self.config.get("poll_seconds", DEFAULT_POLL_SECONDS))

    @property
    def needs_polling(self) -> bool:
        return not getattr(self.store, "supports_push", True)

    @abstractmethod
    def create_live(self) -> LiveData:
        """Build the live cache this component owns"""
        pass

    def mount(self) -> None:
        """Subscribe to changes, then fetch, so no change between the two is missed"""
        self.live = self.create_live()
        self.live.subscribe()
        self.live.load()
        self._schedule_poll()
        self.logger.info(f"Mounted {self.name}: state={self.live.state.value}")

    def _schedule_poll(self) -> None:
        if not self.needs_polling or self.live is None or self.live.closed:
            return
        self.app.task_manager.schedule_task(self.poll_task_name, self.refresh, self.poll_seconds, one_time=False)
        self.logger.debug(f"Polling {self.name} every {self.poll_seconds}s")

    def refresh(self) -> bool:
        """Manual (pull-to-refresh) trigger"""
        if self.live is None:
            self.logger.warning(f"Refresh requested before {self.name} was mounted")
            return False
        return self.live.refresh()

    def status(self) -> Dict[str, Any]:
        """State summary for the API"""
        if self.live is None:
            return {"state": "unmounted", "error": None, "last_updated": None}
        return {
            "state": self.live.state.value,
            "error": self.live.error,
            "last_updated": self.live.last_updated,
        }

    def destroy(self) -> None:
        """Clean up resources"""
        try:
            self.app.task_manager.cancel_task(self.poll_task_name)
            if self.live is not None:
                self.live.close()
            self.logger.debug(f"Component {self.name} destroyed")
        except Exception as e:
            self.logger.error(f"Error destroying component {self.name}: {e}")

    def update_config(self, new_config: Dict[str, Any]) -> None:
        """Update component configuration"""
        self.config = new_config
        self.logger.info(f"Updated config for {self.name}")
        self._schedule_poll()
        self._handle_config_update()

    def _handle_config_update(self) -> None:
        """Handle configuration updates"""
        try:
            if hasattr(self, 'update_from_config'):
                self.update_from_config()
        except Exception as e:
            self.logger.error(f"Error handling config update for {self.name}: {e}", exc_info=True)
