"""
Container metadata models.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ExecutionModel(str, Enum):
    """How the container gets its MPI runtime."""
    BIND = "bind"              # host MPI mounted into the container
    INTEGRATED = "integrated"  # MPI embedded in the image

    @classmethod
    def parse(cls, value: str) -> "ExecutionModel":
        value = (value or "").strip().lower()
        if value == "hybrid":
            return cls.INTEGRATED
        return cls(value)


class ContainerInfo(BaseModel):
    """Metadata extracted from a container image."""
    name: str = Field(..., min_length=1)
    image_path: Path
    model: ExecutionModel = ExecutionModel.INTEGRATED
    mpi_id: str = Field(..., min_length=1, description="MPI implementation the image was built with")
    mpi_version: str = Field(..., min_length=1)
    mpi_dir: Optional[str] = Field(default=None, description="Mount point of the host MPI (bind mode)")
    app_exe: str = Field(..., min_length=1, description="Application binary inside the image")

    @field_validator('model', mode='before')
    @classmethod
    def coerce_model(cls, v):
        if isinstance(v, str):
            return ExecutionModel.parse(v)
        return v
