from __future__ import annotations

import argparse
import subprocess
from collections.abc import Sequence


def install_update(name: str, version: str, cargo: str = "cargo") -> None:
    cmd = (cargo, "install", "--force", name, "--version", version)
    try:
        proc = subprocess.run(cmd)
    except OSError as e:
        raise SystemExit(f"could not run `{cargo} install {name}`: {e}")
    if proc.returncode:
        raise SystemExit(
            f"`{cargo} install {name}` failed (exit {proc.returncode})"
        )


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("name")
    parser.add_argument("version")
    parser.add_argument("--cargo", default="cargo")
    args = parser.parse_args(argv)

    install_update(args.name, args.version, args.cargo)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
