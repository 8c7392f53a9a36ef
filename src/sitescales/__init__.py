version_info = (0, 1, 0)

__version__ = '.'.join(map(str, version_info))
__title__ = 'SiteScales'
__date__ = "19.10.2026"

from sitescales.Model import Model
from sitescales.Site import Site
from sitescales.Observation import Observation
from sitescales.errors import (SiteScalesError, DataError, DegenerateComputationError, ConfigurationError)
