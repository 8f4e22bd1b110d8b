from __future__ import annotations

import time
from importlib.metadata import entry_points
from typing import Iterable, Sequence

from schemagen.core import events as ev
from schemagen.plugins.registry import FILTERS_GROUP


def list_plugins_events(names: Sequence[str] = ()) -> Iterable[ev.SchemagenEvent]:
    yield ev.CommandStarted(command="list-plugins")

    started = time.perf_counter()
    yield ev.StageStarted(command="list-plugins", stage_id="discover_filters", label="Discover filters")
    filters = _discover(FILTERS_GROUP)
    if names:
        filters = [plugin for plugin in filters if plugin["type_key"] in names]
    yield ev.PluginsDiscovered(command="list-plugins", kind="filters", plugins=filters)
    yield ev.StageCompleted(
        command="list-plugins",
        stage_id="discover_filters",
        duration_ms=_elapsed_ms(started),
        status="success",
    )

    yield ev.CommandCompleted(command="list-plugins", ok=True, exit_code=0)


def _discover(group: str) -> list[dict[str, str]]:
    plugins: list[dict[str, str]] = []
    for ep in entry_points(group=group):
        plugins.append({"type_key": ep.name, "impl": ep.value})
    return sorted(plugins, key=lambda plugin: plugin["type_key"])


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
