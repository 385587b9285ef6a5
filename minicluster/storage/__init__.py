from .coordination_store import (
    CoordinationStore as CoordinationStore,
    open_coordination_store as open_coordination_store,
)
from .memory_store import MemoryCoordinationStore as MemoryCoordinationStore
from .object_storage import (
    ObjectStorage as ObjectStorage,
    new_object_storage as new_object_storage,
)
from .local_storage import LocalObjectStorage as LocalObjectStorage
