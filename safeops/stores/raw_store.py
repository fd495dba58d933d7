from .base import EntityStore


class RAWStore(EntityStore):
    def __init__(self):
        super().__init__("raws")
