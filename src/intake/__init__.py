"""
Intake registration.
"""

from .registrar import IntakeRegistrar, Registration

__all__ = ["IntakeRegistrar", "Registration"]
