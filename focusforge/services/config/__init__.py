from .ini_config_service import IniConfigService
from .options import OPTION_SPECS, OptionSpec, WorkOptions

__all__ = ["IniConfigService", "OPTION_SPECS", "OptionSpec", "WorkOptions"]
