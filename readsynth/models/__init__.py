"""
Statistical models used by the simulator.
"""

from .distributions import LengthModel, IdentityModel, GlitchModel
from .error_model import ErrorModel, random_error
from .quality_model import QualityModel
from .adapter_model import AdapterModel

__all__ = [
    'LengthModel',
    'IdentityModel',
    'GlitchModel',
    'ErrorModel',
    'random_error',
    'QualityModel',
    'AdapterModel',
]
