#!/usr/bin/env python3
"""
Local development runner.

Serves the API with auto-reload. Create the tables first with
``python scripts/run_migrations.py``.
"""

import uvicorn


def main():
    """Run the application locally"""
    uvicorn.run(
        "dropview.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
