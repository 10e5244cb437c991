# backend/lendingdb/serve.py
"""
Run the API under uvicorn using env configuration.

    HOST, PORT, RELOAD, WORKERS, LOG_LEVEL, FORWARDED_ALLOW_IPS
    SSL_CERTFILE, SSL_KEYFILE, SSL_CA_CERTS, SSL_KEYFILE_PASSWORD
"""

import os
from typing import Dict, Optional

import uvicorn

APP_PATH = "lendingdb.main:app"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


def _ssl_options() -> Dict[str, Optional[str]]:
    env_to_option = {
        "SSL_CERTFILE": "ssl_certfile",
        "SSL_KEYFILE": "ssl_keyfile",
        "SSL_CA_CERTS": "ssl_ca_certs",
        "SSL_KEYFILE_PASSWORD": "ssl_keyfile_password",
    }
    return {option: os.environ[env] for env, option in env_to_option.items() if os.getenv(env)}


def main() -> None:
    reload_enabled = _env_flag("RELOAD")
    # uvicorn ignores workers when reload is on.
    workers = None if reload_enabled else int(os.getenv("WORKERS", "1"))

    uvicorn.run(
        APP_PATH,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=reload_enabled,
        workers=workers,
        log_level=os.getenv("LOG_LEVEL", "info"),
        proxy_headers=True,
        forwarded_allow_ips=os.getenv("FORWARDED_ALLOW_IPS", "*"),
        **_ssl_options(),
    )


if __name__ == "__main__":
    main()
