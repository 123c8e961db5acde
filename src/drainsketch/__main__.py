"""
Run the API server: ``python -m drainsketch``.
"""

import uvicorn

from drainsketch.core.config import settings


def main() -> None:
    uvicorn.run(
        "drainsketch.api.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()
