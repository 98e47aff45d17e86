from .sass import platform_target, release_url, resolve_sass

__all__ = ["resolve_sass", "platform_target", "release_url"]
