import logging

import uvicorn

from bookings_api.api.app import create_app
from bookings_api.shared.config.settings import settings

logging.basicConfig(
    level=logging.DEBUG if settings.app_debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = create_app()


def run() -> None:
    ssl_options = {}
    if settings.tls_cert_file and settings.tls_key_file:
        ssl_options = {"ssl_certfile": settings.tls_cert_file, "ssl_keyfile": settings.tls_key_file}
    uvicorn.run(
        "bookings_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.app_debug,
        **ssl_options,
    )


if __name__ == "__main__":
    run()
