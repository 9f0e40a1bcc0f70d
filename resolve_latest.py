from __future__ import annotations

import argparse
import os.path
import subprocess
import sys
import tempfile
import tomllib
from collections.abc import Mapping
from collections.abc import Sequence

from list_installed import CRATES_IO
from list_installed import Crate

DUMMY_PACKAGE = """\
[package]
name = "cargo-update-installed-dummy"
version = "0.1.0"
edition = "2021"

[dependencies]
"""


def dependencies_block(crates: Mapping[str, Crate]) -> str:
    return "".join(
        f'{crate.name} = "{crate.version}"\n'
        for _, crate in sorted(crates.items())
    )


def manifest(crates: Mapping[str, Crate]) -> str:
    return DUMMY_PACKAGE + dependencies_block(crates)


def _lock_packages(lockfile: str) -> list[dict[str, object]]:
    try:
        with open(lockfile, "rb") as f:
            contents = tomllib.load(f)
    except FileNotFoundError:
        raise ValueError(f"lock file was not written: {lockfile}")
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"could not parse Cargo.lock: {e}")

    packages = contents.get("package")
    if not isinstance(packages, list):
        raise ValueError("Cargo.lock has no `[[package]]` entries")
    for pkg in packages:
        if not isinstance(pkg, dict):
            raise ValueError("Cargo.lock has a malformed `[[package]]` entry")
    return packages


def resolve_latest(
    crates: Mapping[str, Crate],
    cargo: str = "cargo",
) -> dict[str, str]:
    """ask cargo's resolver which version each crate resolves to

    a throwaway project depending on every crate is locked and the versions
    are read back from its `Cargo.lock`
    """
    if not crates:
        return {}

    with tempfile.TemporaryDirectory() as tmpdir:
        cargo_toml = os.path.join(tmpdir, "Cargo.toml")
        try:
            with open(cargo_toml, "w", encoding="UTF-8") as f:
                f.write(manifest(crates))

            os.makedirs(os.path.join(tmpdir, "src"))
            with open(os.path.join(tmpdir, "src", "lib.rs"), "w"):
                pass
        except OSError as e:
            raise SystemExit(f"could not write cargo project: {e}")

        cmd = (cargo, "update", "--manifest-path", cargo_toml)
        try:
            proc = subprocess.run(cmd)
        except OSError as e:
            raise SystemExit(f"could not run `{cargo} update`: {e}")
        if proc.returncode:
            raise SystemExit(f"`{cargo} update` failed (exit {proc.returncode})")

        packages = _lock_packages(os.path.join(tmpdir, "Cargo.lock"))

    latest = {}
    for name in sorted(crates):
        # the dummy project itself is the only entry without a `source`
        found = [
            pkg for pkg in packages if pkg.get("name") == name and "source" in pkg
        ]
        if not found:
            raise ValueError(f"`{name}` is missing from Cargo.lock")
        elif len(found) > 1:
            # TODO: pick the highest version rather than the last one listed
            print(
                f"warning: multiple versions of `{name}` in Cargo.lock, "
                f"using {found[-1].get('version')}",
                file=sys.stderr,
            )

        version = found[-1].get("version")
        if not isinstance(version, str):
            raise ValueError(f"`{name}` has no version in Cargo.lock")
        latest[name] = version

    return latest


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("crates", nargs="*")
    parser.add_argument("--cargo", default="cargo")
    args = parser.parse_args(argv)

    crates = {name: Crate(name, "*", CRATES_IO) for name in args.crates}
    try:
        latest = resolve_latest(crates, args.cargo)
    except ValueError as e:
        raise SystemExit(f"error: {e}")

    for name, version in latest.items():
        print(f"{name}=={version}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
