"""
Applications module - Tutor applications and the selection workflow.
"""

from edubridge.modules.applications.models import Application, ApplicationStatus

__all__ = ["Application", "ApplicationStatus"]
