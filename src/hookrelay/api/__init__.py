"""FastAPI REST API for hookrelay.

Example:
    ```python
    import uvicorn
    from hookrelay.api import create_app

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
    ```
"""

from .app import app, create_app, register_exception_handlers
from .router import router

__all__ = [
    "app",
    "create_app",
    "register_exception_handlers",
    "router",
]
