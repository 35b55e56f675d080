"""SurfaceBridge: control-surface triggers and rendered feedback for automation controllers."""

__version__ = "0.1.0"

from .app import SurfaceBridgeApp, run_app

__all__ = [
    "SurfaceBridgeApp",
    "run_app",
]
