"""Beacon: keeps this process registered with a discovery registry."""

from .config import AgentConfig, load_config, validate_config
from .controller import ControllerState, RegistrationController, RegistrationState
from .registry import RegistryClient

__version__ = '0.1.0'
__all__ = [
    'AgentConfig',
    'ControllerState',
    'RegistrationController',
    'RegistrationState',
    'RegistryClient',
    'load_config',
    'validate_config',
]
