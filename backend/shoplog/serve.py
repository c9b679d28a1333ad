"""
Console entry point: `shoplog-serve`.

Server options come from the environment. TLS is switched on by pointing
SSL_CERTFILE / SSL_KEYFILE at files on disk.
"""

import logging
import os
from typing import Any, Dict

import uvicorn

APP_TARGET = "shoplog.main:app"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# env var -> uvicorn.run keyword, passed through only when set
SSL_ENV_OPTIONS = {
    "SSL_CERTFILE": "ssl_certfile",
    "SSL_KEYFILE": "ssl_keyfile",
    "SSL_CA_CERTS": "ssl_ca_certs",
    "SSL_KEYFILE_PASSWORD": "ssl_keyfile_password",
}


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def configure_logging(level: str) -> None:
    """Send shoplog.* records to stderr at the same level uvicorn logs at."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("shoplog").setLevel(level.upper())


def server_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", "8000")),
        "reload": _env_flag("RELOAD"),
        "log_level": os.getenv("LOG_LEVEL", "info").lower(),
        "proxy_headers": True,
        "forwarded_allow_ips": os.getenv("FORWARDED_ALLOW_IPS", "*"),
    }
    for env_name, option in SSL_ENV_OPTIONS.items():
        value = os.getenv(env_name)
        if value:
            options[option] = value
    return options


def main() -> None:
    options = server_options()
    configure_logging(options["log_level"])
    uvicorn.run(APP_TARGET, **options)


if __name__ == "__main__":
    main()
