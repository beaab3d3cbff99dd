from typing import Final

from .argparser import get_cli_args
from .env import EnvConf, get_env_vars
from .logging_conf import init_logging
from .utils import cerr, cout, time_now_ms

__all__: Final = ["EnvConf", "cerr", "cout", "get_cli_args", "get_env_vars", "init_logging", "time_now_ms"]
