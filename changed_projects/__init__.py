"""Release-based change detection for Gradle monorepos."""

from .detector import ChangeDetector, DetectionResult, affected_modules
from .models import Module, ModuleListError

__all__ = ['ChangeDetector', 'DetectionResult', 'Module', 'ModuleListError', 'affected_modules']
