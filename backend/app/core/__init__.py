"""
Core module for application configuration and the quiz engine.

Note: auth and engine modules are not imported at package level to avoid
circular imports (they depend on app.models, which would create a cycle).
Import them directly: from app.core.test_lifecycle import pause_test
"""
from .config import settings

__all__ = ["settings"]
