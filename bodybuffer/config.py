from __future__ import annotations

from starlette.config import Config

from bodybuffer.convertors import DEFAULT_MAX_BODY_SIZE, parse_size

ENVIRON_KEY = "BODY_BUFFER_MAX_SIZE"


def max_body_size_from_config(config: Config | None = None) -> int:
    """
    Read the body size limit from the environment.

    The middleware never does this on its own; pass the result in explicitly:

        config = Config(".env")
        app.add_middleware(RequestBodyBufferMiddleware, max_body_size=max_body_size_from_config(config))
    """
    if config is None:
        config = Config()
    return config(ENVIRON_KEY, cast=parse_size, default=DEFAULT_MAX_BODY_SIZE)
