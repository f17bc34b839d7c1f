"""Built-in interaction handlers."""

from interaction_router.registry import HandlerRegistry, build_registry

from . import messages, ping, webhooks

BUILDERS = (ping.commands, webhooks.commands, messages.commands)


def build_default_registry() -> HandlerRegistry:
    """Freeze every built-in handler into one registry."""

    return build_registry(BUILDERS)


__all__ = ["BUILDERS", "build_default_registry"]
