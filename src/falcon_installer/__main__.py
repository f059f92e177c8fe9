"""Entry point for `python -m falcon_installer`."""

from __future__ import annotations

from falcon_installer.cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
