from .contact_component import ContactComponent


def register_components(plugin_manager):
    """Register Contact component."""
    plugin_manager.register_component(ContactComponent)
