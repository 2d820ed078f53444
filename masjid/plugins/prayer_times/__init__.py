from .prayer_times_component import PrayerTimesComponent


def register_components(plugin_manager):
    """Register Prayer Times component."""
    plugin_manager.register_component(PrayerTimesComponent)
