from .client import VerificationApiClient
from .controller import VerificationWizardController
from .session import WizardSession, WizardStep

__all__ = [
    "VerificationApiClient",
    "VerificationWizardController",
    "WizardSession",
    "WizardStep",
]
