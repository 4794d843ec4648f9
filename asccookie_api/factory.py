"""Flask application factory."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from flask import Flask

from .routes.api import api_bp
from .services import CookieService, CookieServiceConfig, Machine
from .services import constants


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__)

    log_level = os.getenv(constants.ENV_LOG_LEVEL)
    if log_level:
        logging.getLogger("asccookie_api").setLevel(log_level.upper())

    machine = Machine()
    storage_root = machine.storage_root(os.getenv(constants.ENV_STORAGE_ROOT))
    hash_key = os.getenv(constants.ENV_HASH_KEY) or constants.NAMESPACE_HASH_KEY

    verify: bool | str = True
    if os.getenv(constants.ENV_SSL_NO_VERIFY) == "1":
        verify = False
    else:
        ca_bundle_env = os.getenv(constants.ENV_CA_BUNDLE)
        if ca_bundle_env:
            verify = ca_bundle_env
        else:
            default_bundle = storage_root / "ca-bundle.pem"
            if default_bundle.exists():
                verify = str(default_bundle)

    app.config.update(STORAGE_ROOT=str(storage_root), HASH_KEY=hash_key, HTTP_VERIFY=verify)
    if overrides:
        app.config.update(overrides)

    app.config["COOKIE_SERVICE"] = CookieService(
        CookieServiceConfig(
            root=Path(app.config["STORAGE_ROOT"]),
            hash_key=app.config["HASH_KEY"],
            verify=app.config["HTTP_VERIFY"],
        )
    )

    app.register_blueprint(api_bp)

    return app
