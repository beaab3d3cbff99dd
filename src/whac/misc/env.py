import os
import sys
from pathlib import Path
from typing import Final, NamedTuple

from dotenv import load_dotenv

from whac import __prog__

from .utils import cerr

_PORT_MIN: Final = 1
_PORT_MAX: Final = 65535

_DEFAULT_APP_PORT: Final = 8000
_DEFAULT_MQTT_PORT: Final = 1883
_DEFAULT_DEVICE_ID: Final = "whac-web"


class EnvConf(NamedTuple):
    app_port: int
    data_dir: Path
    mqtt_broker: str | None
    mqtt_port: int
    device_id: str


def _validate_port(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default

    try:
        port = int(val)
    except ValueError as e:
        msg = f"[cyan]{name}[/] is not an integer: {val}"
        raise ValueError(msg) from e
    else:
        if not (_PORT_MIN <= port <= _PORT_MAX):
            msg = f"[cyan]{name}[/] is out of range: {val}"
            raise ValueError(msg)

    return port


def _validate_broker(name: str) -> str | None:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None

    return val.strip()


def _validate_device_id(name: str) -> str:
    val = os.getenv(name, _DEFAULT_DEVICE_ID).strip()
    if not val:
        return _DEFAULT_DEVICE_ID

    if "/" in val or "+" in val or "#" in val:
        msg = f"[cyan]{name}[/] must not contain MQTT topic characters: {val}"
        raise ValueError(msg)

    return val


def _validate_data_dir(name: str) -> Path:
    val = os.getenv(name, ".")
    path = Path(val)

    if path.exists() and not path.is_dir():
        msg = f"[cyan]{name}[/] is not a directory: {val}"
        raise ValueError(msg)

    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"[cyan]{name}[/] cannot be created: {e}"
            raise ValueError(msg) from e

    return path


def get_env_vars() -> EnvConf:
    """Load `.env` & validate every variable, exiting on the first batch of errors."""

    load_dotenv()

    errs: list[str] = []
    aport = mport = 0
    broker: str | None = None
    device_id = _DEFAULT_DEVICE_ID
    data_dir: Path | None = None

    try:
        aport = _validate_port("APP_PORT", _DEFAULT_APP_PORT)
    except ValueError as e:
        errs.append(str(e))

    try:
        data_dir = _validate_data_dir("DATA_DIR")
    except ValueError as e:
        errs.append(str(e))

    try:
        broker = _validate_broker("MQTT_BROKER")
    except ValueError as e:
        errs.append(str(e))

    try:
        mport = _validate_port("MQTT_PORT", _DEFAULT_MQTT_PORT)
    except ValueError as e:
        errs.append(str(e))

    try:
        device_id = _validate_device_id("DEVICE_ID")
    except ValueError as e:
        errs.append(str(e))

    if errs or data_dir is None:
        cerr.print("".join(f"[bold bright_red]{__prog__}: env-error:[/] {e}\n" for e in errs), end="")
        sys.exit(1)

    return EnvConf(
        app_port=aport,
        data_dir=data_dir,
        mqtt_broker=broker,
        mqtt_port=mport,
        device_id=device_id,
    )
