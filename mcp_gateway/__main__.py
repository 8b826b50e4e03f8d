"""Run the gateway with uvicorn: python -m mcp_gateway."""

import uvicorn

from mcp_gateway.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "mcp_gateway.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
