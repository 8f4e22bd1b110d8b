from importlib.metadata import entry_points

FILTERS_GROUP = "schemagen.filters"


def load_filter(kind: str):
    for ep in entry_points(group=FILTERS_GROUP):
        if ep.name == kind:
            return ep.load()
    raise ValueError(f"Unknown schema filter: {kind}")
