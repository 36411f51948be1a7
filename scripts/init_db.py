import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from course_platform.auth import bootstrap_admin_if_needed
from course_platform.config import load_config
from course_platform.db import connect, init_db, seed_settings


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as conn:
        seeded = seed_settings(conn, name=cfg.SITE_NAME, copyright=cfg.SITE_COPYRIGHT)

    boot = bootstrap_admin_if_needed(cfg) if cfg.ENABLE_ADMIN_BOOTSTRAP else None

    print(f"DB initialized: {cfg.DB_DSN}")
    if seeded:
        print(f"Seeded settings: name={cfg.SITE_NAME!r}")
    if boot:
        print(f"Created admin user: username={boot['username']} email={boot['email']}")


if __name__ == "__main__":
    main()
