import logging
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from .component_base import LiveComponent
from .config import Config
from .db import create_db_engine, init_db
from .plugin_manager import PluginManager
from .rest_store import RestDataStore
from .store import DataStore, SqlDataStore
from .task_manager import TaskManager


def create_store(config_data: Dict[str, Any]) -> DataStore:
    """Build the data store named by store.backend (sql or rest)."""
    backend = (config_data.get("store") or {}).get("backend", "sql")
    if backend == "rest":
        rest_config = config_data.get("rest") or {}
        return RestDataStore(
            rest_config.get("url"),
            rest_config.get("api_key") or "",
            timeout=float(rest_config.get("timeout", 10)),
        )
    if backend != "sql":
        raise ValueError(f"Unknown store backend: {backend}")
    return SqlDataStore(init_db(create_db_engine(config_data)))


class MasjidApp:
    def __init__(self, config_path: Optional[str] = None, store: Optional[DataStore] = None,
                 watch_config: bool = True):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path, watch=watch_config)
        self.config.register_change_callback(self.handle_config_change)

        self._setup_logging()

        # Store is built once here and handed to every component
        self.store = store if store is not None else create_store(self.config.data)

        self.plugin_manager = PluginManager()
        self.task_manager = TaskManager()
        self.components: List[LiveComponent] = []
        self._stop_event = threading.Event()

    def _setup_logging(self):
        """Configure logging to write to both file and stdout"""
        log_config = self.config.data.get("logging") or {}
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.setLevel(getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        log_file = log_config.get("file")
        if log_file:
            Path(log_file).expanduser().parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(Path(log_file).expanduser())
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Masjid application starting...")

    def initialize_components(self) -> None:
        """Create and mount every enabled component."""
        for component_name in self.plugin_manager.components:
            component_config = self.config.get_component_config(component_name)
            try:
                component = self.plugin_manager.create_component(self, component_name, component_config)
                if component is None:
                    self.logger.debug(f"Skipping disabled component: {component_name}")
                    continue
                component.mount()
                self.components.append(component)
                self.logger.debug(f"Component {component_name} initialized successfully")
            except Exception as e:
                self.logger.error(f"Error initializing component {component_name}: {e}")
                self.logger.exception(e)

    def get_component(self, name: str) -> Optional[LiveComponent]:
        return next((c for c in self.components if c.name == name), None)

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Push changed component config to mounted components; mount newly enabled ones."""
        self.logger.info("Handling config change")
        try:
            component_configs = new_config.get("components") or {}
            for name, config in component_configs.items():
                component = self.get_component(name)
                enabled = bool((config or {}).get("enable", False))
                if component is not None and not enabled:
                    component.destroy()
                    self.components.remove(component)
                    self.logger.info(f"Component {name} disabled")
                elif component is not None:
                    component.update_config(config)
                elif enabled and name in self.plugin_manager.components:
                    new_component = self.plugin_manager.create_component(self, name, config)
                    if new_component is not None:
                        new_component.mount()
                        self.components.append(new_component)
        except Exception as e:
            self.logger.error(f"Error handling config change: {e}", exc_info=True)

    def run(self) -> None:
        """Mount components, start the API server and block until stop()."""
        from masjid.api.server import run_api_server

        try:
            self.initialize_components()
            run_api_server(self)
            self._stop_event.wait()
        except KeyboardInterrupt:
            self.logger.info("Interrupted")
        finally:
            self.shutdown()

    def stop(self) -> None:
        self._stop_event.set()

    def shutdown(self) -> None:
        for component in self.components:
            component.destroy()
        self.components = []
        self.task_manager.stop()
        self.config.cleanup()
