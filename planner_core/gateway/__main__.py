"""本地运行 Gateway：python -m planner_core.gateway"""

import uvicorn

from planner_core.config.settings import settings
from planner_core.gateway.app import create_app


def main() -> None:
    uvicorn.run(
        create_app(settings),
        host=settings.gateway_host,
        port=settings.gateway_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
