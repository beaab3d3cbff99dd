"""
Session server entry point.

    1. Parse CLI args & initialise logging
    2. Load & validate environment (.env supported)
    3. Serve the FastAPI app via uvicorn (the session runs on its event loop)
"""

import contextlib

import uvicorn

from .app import AppConf, create_app
from .misc import get_cli_args, get_env_vars, init_logging


def main() -> None:
    args = get_cli_args()
    init_logging(args.log_level)
    env = get_env_vars()

    conf = AppConf(
        data_dir=env.data_dir,
        slots=args.slots,
        muted=args.muted,
        mqtt_broker=env.mqtt_broker,
        mqtt_port=env.mqtt_port,
        device_id=env.device_id,
    )

    with contextlib.suppress(KeyboardInterrupt):
        uvicorn.run(create_app(conf), host=args.host, port=env.app_port, log_config=None)


if __name__ == "__main__":
    main()
