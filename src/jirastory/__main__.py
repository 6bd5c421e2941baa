"""Module entrypoint so ``python -m jirastory`` runs the action.

``run()`` calls :func:`jirastory.cli.main` with the real command line, which
is how ``action.yml`` invokes it.
"""

from __future__ import annotations

from .cli import main


def run() -> int:  # pragma: no cover - thin wrapper
    return main(None)


if __name__ == '__main__':  # pragma: no cover
    raise SystemExit(run())
