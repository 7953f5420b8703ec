"""Backend entrypoint for the packaged app. Starts uvicorn with the port from env."""
import os
import uvicorn

# Import app directly so a frozen bundle can resolve the package (uvicorn's
# string-based import fails under PyInstaller).
from trackvest.main import app


def main() -> None:
    port = int(os.environ.get("BACKEND_PORT", "8001"))
    uvicorn.run(app, host="127.0.0.1", port=port)


if __name__ == "__main__":
    main()
