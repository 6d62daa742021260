"""Storage for the webhook target registry.

Example:
    ```python
    from hookrelay.storage import TargetStore

    async with TargetStore() as store:
        target = await store.insert("https://example.com/hook")
        targets = await store.list_all_targets()
    ```
"""

from .retry import qdrant_retry
from .store import COLLECTION_SUFFIX, TargetStore

__all__ = [
    "COLLECTION_SUFFIX",
    "TargetStore",
    "qdrant_retry",
]
