"""postboard entrypoint.

Run with:
  python -m postboard
"""

import os
import uvicorn

def main() -> None:
    host = os.getenv("POSTBOARD_HOST", "0.0.0.0")
    port = int(os.getenv("POSTBOARD_PORT", "8000"))
    reload = os.getenv("POSTBOARD_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("postboard.app:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
