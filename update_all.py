from __future__ import annotations

import argparse
import sys
from collections.abc import Mapping
from collections.abc import Sequence

from install_update import install_update
from list_installed import Crate
from list_installed import installed_crates
from resolve_latest import resolve_latest


def unconstrained(crates: Mapping[str, Crate]) -> dict[str, Crate]:
    ret: dict[str, Crate] = {}
    for crate in crates.values():
        if crate.name in ret:
            print(
                f"warning: `{crate.name}` listed twice, ignoring duplicate",
                file=sys.stderr,
            )
            continue
        ret[crate.name] = crate._replace(version="*")
    return ret


def updates_needed(
    installed: Mapping[str, Crate],
    latest: Mapping[str, str],
) -> tuple[list[tuple[str, str]], list[str]]:
    todo = []
    up_to_date = []
    for name, crate in sorted(installed.items()):
        if crate.version == latest[name]:
            up_to_date.append(name)
        else:
            todo.append((name, latest[name]))
    return todo, up_to_date


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--cargo", default="cargo")
    args = parser.parse_args(argv)

    try:
        installed = installed_crates(args.cargo)
        latest = resolve_latest(unconstrained(installed), args.cargo)
        todo, up_to_date = updates_needed(installed, latest)
    except ValueError as e:
        raise SystemExit(f"error: {e}")

    for name in up_to_date:
        print(f"{name}: up to date ({installed[name].version})")

    if todo:
        for name, version in todo:
            print(f"{name}: updating {installed[name].version} -> {version}...")
            install_update(name, version, args.cargo)
    else:
        print("up to date!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
