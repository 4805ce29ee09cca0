"""
Resource intents: Package, Directory, Template, Service, Execute.
"""

from cookplan.resources.exec import Execute
from cookplan.resources.file import Directory, Template
from cookplan.resources.pkg import Package
from cookplan.resources.service import Service

__all__ = ["Directory", "Execute", "Package", "Service", "Template"]
