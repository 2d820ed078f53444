from .announcements_component import AnnouncementsComponent


def register_components(plugin_manager):
    """Register Announcements component."""
    plugin_manager.register_component(AnnouncementsComponent)
