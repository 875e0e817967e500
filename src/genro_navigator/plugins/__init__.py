"""Built-in router plugins.

Concrete plugins register themselves when their module is imported;
``genro_navigator`` imports ``logging`` on startup, this package does not.
"""

__all__: list[str] = []
