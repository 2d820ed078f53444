from .events_component import EventsComponent


def register_components(plugin_manager):
    """Register Events component."""
    plugin_manager.register_component(EventsComponent)
