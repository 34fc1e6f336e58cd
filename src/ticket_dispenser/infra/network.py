import socket


def get_local_ip() -> str:
    """Best-effort LAN IPv4 address of this host, falling back to "localhost"."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # No packet is sent; connect() on UDP only selects the outbound interface.
        sock.connect(("10.255.255.255", 1))
        ip = sock.getsockname()[0]
    except OSError:
        return "localhost"
    finally:
        sock.close()
    if ip.startswith("127."):
        return "localhost"
    return ip
