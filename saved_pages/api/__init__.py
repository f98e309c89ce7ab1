from .client import SavedPagesClient
from .local import LocalPageSource

__all__ = ["LocalPageSource", "SavedPagesClient"]
