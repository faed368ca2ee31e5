"""
Programmatic Alembic migration runner.

There is no alembic.ini: the script location is the migrations package next to
this module and the database URL comes from the db Settings.

Usage examples:
    python -m inventory_api.db.run_migrations upgrade head
    python -m inventory_api.db.run_migrations downgrade -1
    python -m inventory_api.db.run_migrations revision --autogenerate -m "add column"
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List

from alembic import command
from alembic.config import Config

from inventory_api.db.config import get_settings

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


# PUBLIC_INTERFACE
def build_config() -> Config:
    """Return an Alembic Config pointing at the bundled migrations."""
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # Offline mode reads this; env.py builds its own async engine when online.
    cfg.set_main_option("sqlalchemy.url", get_settings().sync_database_url)
    return cfg


def _revision(cfg: Config, args: List[str]) -> None:
    autogenerate = "--autogenerate" in args
    message = None
    if "-m" in args:
        idx = args.index("-m")
        if idx + 1 < len(args):
            message = args[idx + 1]
    command.revision(cfg, message=message, autogenerate=autogenerate)


_COMMANDS: Dict[str, Callable[[Config, List[str]], None]] = {
    "upgrade": lambda cfg, a: command.upgrade(cfg, a[0] if a else "head"),
    "downgrade": lambda cfg, a: command.downgrade(cfg, a[0] if a else "-1"),
    "stamp": lambda cfg, a: command.stamp(cfg, a[0] if a else "head"),
    "history": lambda cfg, a: command.history(cfg),
    "current": lambda cfg, a: command.current(cfg),
    "heads": lambda cfg, a: command.heads(cfg),
    "revision": _revision,
}


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run an Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, rest = args[0], args[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"Unsupported Alembic command: {cmd}. Choose from: {', '.join(sorted(_COMMANDS))}")
        sys.exit(2)
    handler(build_config(), rest)


if __name__ == "__main__":
    main()
