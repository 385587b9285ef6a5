"""
Free TCP port allocation.

Ports are observed free by binding an ephemeral listener and reading
back the assigned port. The listener is closed immediately, so another
process may claim the port before the role binds it. This race is
accepted: roles bind within milliseconds of allocation on a test host.
"""

import socket

from minicluster.errors import PortAllocationError


def _ephemeral_port(host: str) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, 0))
        sock.listen(1)
        return int(sock.getsockname()[1])


def allocate_ports(
    count: int,
    host: str = "0.0.0.0",
    max_attempts: int | None = None,
) -> list[int]:
    """
    Return `count` pairwise-distinct ports in allocation order.

    Duplicates and transient bind failures are retried until
    `max_attempts` listeners have been opened (default: 10 per port).
    Address-resolution errors are not retried.
    """
    if count < 0:
        raise ValueError(f"Cannot allocate a negative number of ports ({count})")

    if max_attempts is None:
        max_attempts = max(count * 10, 10)

    ports: list[int] = []
    seen: set[int] = set()
    attempts = 0
    last_error: OSError | None = None

    while len(ports) < count:
        if attempts >= max_attempts:
            reason = f"only {len(ports)} distinct ports after {attempts} attempts"
            if last_error is not None:
                reason = f"{reason}, last error: {last_error}"

            raise PortAllocationError(count, reason)

        attempts += 1

        try:
            port = _ephemeral_port(host)

        except socket.gaierror as err:
            raise PortAllocationError(count, f"cannot resolve '{host}': {err}") from err

        except OSError as err:
            last_error = err
            continue

        if port in seen:
            continue

        seen.add(port)
        ports.append(port)

    return ports
