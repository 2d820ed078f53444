"""
In-memory timers for component callbacks (the next-prayer tick, polling refreshes).
"""
import logging
import threading
from datetime import datetime, timezone
from threading import Timer
from typing import Any, Callable, Dict, List


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.logger = logging.getLogger("TaskManager")
        self._lock = threading.Lock()
        self._stopped = False

    def _start_timer(self, name: str, callback: Callable, delay: float, one_time: bool) -> Timer:
        """Create and start the timer for name. Caller holds _lock."""
        if name in self.tasks:
            self.logger.debug(f"Cancelling existing task {name}")
            self.tasks[name].cancel()
        scheduled_time = datetime.now().timestamp() + delay
        timer = Timer(delay, self._run_task, args=(name, callback, delay, one_time))
        timer.daemon = True
        timer.scheduled_time = scheduled_time
        self.tasks[name] = timer
        timer.start()
        return timer

    def schedule_task(self, name: str, callback: Callable, delay: float, one_time: bool = True) -> None:
        """Schedule a task to run after delay seconds; repeating tasks reschedule themselves."""
        try:
            with self._lock:
                if self._stopped:
                    self.logger.debug(f"TaskManager stopped; not scheduling {name}")
                    return
                timer = self._start_timer(name, callback, delay, one_time)
            self.logger.debug(
                f"Timer started for {name}, scheduled for {datetime.fromtimestamp(timer.scheduled_time)}"
            )
        except Exception as e:
            self.logger.error(f"Error scheduling task {name}: {e}")

    def _run_task(self, name: str, callback: Callable, delay: float, one_time: bool) -> None:
        """Run the task and reschedule if needed."""
        try:
            callback()
            timer = self.tasks.get(name)
            if timer is not None:
                timer.last_run = datetime.now().timestamp()
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")
        with self._lock:
            # Timer is a Thread; the entry still pointing at this thread means nobody
            # cancelled or replaced the task while the callback ran
            if self.tasks.get(name) is not threading.current_thread():
                return
            if one_time:
                self.tasks.pop(name)
            elif not self._stopped:
                self._start_timer(name, callback, delay, one_time)

    def cancel_task(self, name: str) -> bool:
        """Cancel a scheduled task. Returns False if no task had that name."""
        with self._lock:
            timer = self.tasks.pop(name, None)
        if timer is None:
            return False
        timer.cancel()
        self.logger.debug(f"Cancelled task {name}")
        return True

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        result = []
        with self._lock:
            timers = list(self.tasks.items())
        for name, timer in timers:
            if getattr(timer, "scheduled_time", None) is not None:
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        with self._lock:
            self._stopped = True
            timers = list(self.tasks.values())
            self.tasks.clear()
        for task in timers:
            task.cancel()
