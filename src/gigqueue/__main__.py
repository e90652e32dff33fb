from __future__ import annotations

from gigqueue.ui.cli import run

run()
