"""Entry point for `uvicorn server:app` and `python server.py`."""

from grocerynana.main import app, run

__all__ = ["app"]


if __name__ == "__main__":
    run()
