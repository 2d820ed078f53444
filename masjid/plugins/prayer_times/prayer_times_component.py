from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from masjid.core.changes import visible_row_changed
from masjid.core.component_base import LiveComponent
from masjid.core.live_cache import LiveCollection

from .models import TABLE, WEEKLY_PRAYER, PrayerSlot
from .resolver import FRIDAY, resolve_next_prayer
from .service import LOAD_ERROR, fetch_prayer_slots


class PrayerTimesComponent(LiveComponent):
    name = "Prayer Times"

    def __init__(self, app, config: Dict[str, Any], clock: Optional[Callable[[], datetime]] = None):
        super().__init__(app, config)
        self.clock = clock or datetime.now
        self.next_prayer: Optional[PrayerSlot] = None
        self.computed_at: Optional[datetime] = None

    @property
    def tick_task_name(self) -> str:
        return f"{self.name} tick"

    @property
    def tick_seconds(self) -> float:
        return float(self.config.get("tick_seconds", 60))

    @property
    def slots(self) -> List[PrayerSlot]:
        return self.live.items if self.live is not None else []

    def create_live(self) -> LiveCollection:
        live = LiveCollection(
            self.store,
            TABLE,
            fetch_prayer_slots,
            relevant=visible_row_changed("is_active"),
            error_message=LOAD_ERROR,
            clock=self.clock,
            name="prayer_times",
        )
        live.add_listener(lambda _live: self.recompute_next_prayer())
        return live

    def mount(self) -> None:
        super().mount()
        self.app.task_manager.schedule_task(
            self.tick_task_name, self.recompute_next_prayer, self.tick_seconds, one_time=False
        )

    def recompute_next_prayer(self) -> Optional[PrayerSlot]:
        """Re-run the resolver against the cached slots and the current time."""
        now = self.clock()
        self.next_prayer = resolve_next_prayer(
            self.slots,
            now,
            weekly_prayer=self.config.get("weekly_prayer", WEEKLY_PRAYER),
            weekly_weekday=int(self.config.get("weekly_weekday", FRIDAY)),
        )
        self.computed_at = now
        if self.next_prayer is not None:
            self.logger.debug(f"Next prayer at {now:%H:%M}: {self.next_prayer.prayer_name}")
        return self.next_prayer

    def update_from_config(self) -> None:
        # weekly prayer settings or tick interval may have changed
        self.recompute_next_prayer()
        if self.live is not None and not self.live.closed:
            self.app.task_manager.schedule_task(
                self.tick_task_name, self.recompute_next_prayer, self.tick_seconds, one_time=False
            )

    def destroy(self) -> None:
        self.app.task_manager.cancel_task(self.tick_task_name)
        super().destroy()
