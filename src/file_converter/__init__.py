"""Local file format conversion toolkit."""

__version__ = "0.1.0"

from .config import AppConfig, load_config
from .core import ConversionService
from .detection import Category, classify
from .errors import ConversionError
from .jobs import JobBoard
from .models import BatchConversionResult, ConversionResult, SourceFile
from .router import convert

__all__ = [
    "AppConfig",
    "BatchConversionResult",
    "Category",
    "ConversionError",
    "ConversionResult",
    "ConversionService",
    "JobBoard",
    "SourceFile",
    "__version__",
    "classify",
    "convert",
    "load_config",
]
