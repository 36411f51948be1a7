import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import uvicorn


def main() -> None:
    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "8000"))
    reload = os.environ.get("API_RELOAD", "").strip().lower() in ("1", "true", "yes")
    uvicorn.run("course_platform.api.server:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
