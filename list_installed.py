from __future__ import annotations

import argparse
import subprocess
import sys
from collections.abc import Sequence
from typing import NamedTuple

from packaging.version import InvalidVersion
from packaging.version import Version

CRATES_IO = "crates.io"
GIT = "git"
LOCAL = "local"


class Crate(NamedTuple):
    name: str
    version: str
    kind: str


def parse_list_line(line: str) -> Crate | None:
    """parse one line of `cargo install --list`

    returns `None` for the indented binary lines and for git / local crates
    """
    if line[:1].isspace():
        return None

    parts = line.split(" ")
    name = parts[0]
    if not name:
        raise ValueError(f"missing crate name: {line!r}")

    if len(parts) < 2 or not parts[1].startswith("v"):
        raise ValueError(f"expected `v` prefixed version: {line!r}")
    version = parts[1][1:]

    if version.endswith(":"):
        version = version[:-1]
        if not version:
            raise ValueError(f"empty version: {line!r}")
        return Crate(name=name, version=version, kind=CRATES_IO)

    if len(parts) < 3 or not parts[2].startswith("(") or not parts[2].endswith("):"):
        raise ValueError(f"expected `(source):`: {line!r}")
    source = parts[2][1:-2]

    if source.startswith("http"):
        kind = GIT
    else:
        kind = LOCAL
    print(
        f"warning: {kind} binaries are not supported. ignoring `{name}`.",
        file=sys.stderr,
    )
    return None


def _newer(a: str, b: str) -> bool:
    try:
        return Version(a) > Version(b)
    except InvalidVersion:
        return a > b


def installed_crates(cargo: str = "cargo") -> dict[str, Crate]:
    cmd = (cargo, "install", "--list")
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE)
    except OSError as e:
        raise SystemExit(f"could not run `{' '.join(cmd)}`: {e}")
    if proc.returncode:
        raise SystemExit(f"`{' '.join(cmd)}` failed (exit {proc.returncode})")

    try:
        out = proc.stdout.decode("UTF-8")
    except UnicodeDecodeError as e:
        raise SystemExit(f"`{' '.join(cmd)}` produced invalid UTF-8: {e}")

    crates: dict[str, Crate] = {}
    for line in out.splitlines():
        if not line:
            continue
        crate = parse_list_line(line)
        if crate is None:
            continue
        # an old version may still be listed when it had a binary which is
        # no longer present in the newer version
        prev = crates.get(crate.name)
        if prev is not None and _newer(prev.version, crate.version):
            continue
        crates[crate.name] = crate

    return dict(sorted(crates.items()))


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--cargo", default="cargo")
    args = parser.parse_args(argv)

    try:
        crates = installed_crates(args.cargo)
    except ValueError as e:
        raise SystemExit(f"error: {e}")

    for crate in crates.values():
        print(f"{crate.name}=={crate.version}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
