"""Application entry point.

Runs the FastAPI application with uvicorn.
"""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "fitsocial.main:app",
        host=os.getenv("HOST", "localhost"),
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
