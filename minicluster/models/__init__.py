from .component import (
    CheckHealthRequest as CheckHealthRequest,
    CheckHealthResponse as CheckHealthResponse,
    ComponentStates as ComponentStates,
    ComponentStatesRequest as ComponentStatesRequest,
    Session as Session,
    StateCode as StateCode,
)
from .roles import (
    COORDINATOR_KINDS as COORDINATOR_KINDS,
    SCALABLE_KINDS as SCALABLE_KINDS,
    InvalidTransitionError as InvalidTransitionError,
    RoleHandle as RoleHandle,
    RoleKind as RoleKind,
    RoleState as RoleState,
)
