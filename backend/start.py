import os
import sys
import uvicorn
import socket

# DATABASE_URL has to be set before crewtech.config is imported,
# otherwise the engine is built against the PostgreSQL default
if not os.getenv("DATABASE_URL"):
    if getattr(sys, 'frozen', False):
        # Running as compiled executable
        base_dir = os.path.dirname(sys.executable)
    else:
        base_dir = os.path.dirname(os.path.abspath(__file__))

    db_path = os.path.join(base_dir, "crewtech.db")
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    print(f"[INFO] Using SQLite database at: {db_path}")

from crewtech.db import engine  # noqa: E402
from crewtech.models import Base  # noqa: E402
from crewtech.main import app as fastapi_app  # noqa: E402


def find_free_port(start_port=8000, max_attempts=10):
    """First port in [start_port, start_port + max_attempts) that binds on localhost"""
    for port in range(start_port, start_port + max_attempts):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(('127.0.0.1', port))
                return port
        except OSError:
            continue
    raise RuntimeError(f"Could not find a free port in range {start_port}-{start_port + max_attempts}")


if __name__ == "__main__":
    if engine.dialect.name == "sqlite":
        # local file database: no alembic run, create the schema directly
        Base.metadata.create_all(bind=engine)

    try:
        port = find_free_port(int(os.getenv("PORT", "8000")))
    except RuntimeError as exc:
        print(f"[ERROR] {exc}")
        sys.exit(1)
    if port != int(os.getenv("PORT", "8000")):
        print(f"[WARN] Port {os.getenv('PORT', '8000')} in use, using port {port} instead")

    uvicorn.run(fastapi_app, host="127.0.0.1", port=port, reload=False)
