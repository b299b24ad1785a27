"""Container images: metadata model and inspection."""

from .inspector import ContainerInspector
from .models import ContainerInfo, ExecutionModel

__all__ = ["ContainerInfo", "ContainerInspector", "ExecutionModel"]
