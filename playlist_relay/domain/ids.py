from __future__ import annotations

import importlib

ulid_module = importlib.import_module("ulid")


def new_batch_id() -> str:
    return f"batch_{ulid_module.new().str}"
