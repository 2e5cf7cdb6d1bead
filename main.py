# main.py
# Local dev entrypoint: python main.py
import os
import logging

from studiobook.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "studiobook.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "8000")),
        reload=True,
    )
