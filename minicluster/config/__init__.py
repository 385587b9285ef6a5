from .overlay import (
    CHANNEL_NAME_PREFIX as CHANNEL_NAME_PREFIX,
    COORDINATION_ROOT_PATH as COORDINATION_ROOT_PATH,
    FORCE_SYNC_ENABLED as FORCE_SYNC_ENABLED,
    GRACEFUL_STOP_TIMEOUT as GRACEFUL_STOP_TIMEOUT,
    LOCAL_STORAGE_PATH as LOCAL_STORAGE_PATH,
    MQ_TYPE as MQ_TYPE,
    STORAGE_ROOT_PATH as STORAGE_ROOT_PATH,
    STORAGE_TYPE as STORAGE_TYPE,
    ConfigOverlay as ConfigOverlay,
    new_namespace as new_namespace,
)
