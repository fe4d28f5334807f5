"""Discovery of SocketCAN network interfaces."""

from __future__ import annotations

import subprocess


def parse_ip_link_output(text: str) -> list[str]:
    """Names of the CAN interfaces listed in ``ip -o link show`` output."""
    names = []
    for line in filter(None, text.split("\n")):
        parts = line.split(" ")
        if len(parts) < 2 or not parts[1]:
            raise ValueError(f"malformed interface line: {line!r}")
        name = parts[1][:-1]
        if "can" in name:
            names.append(name)
    return names


def find_socketcan_devices() -> list[str]:
    """List the CAN interfaces on this system, or an empty list if ``ip`` cannot run."""
    try:
        result = subprocess.run(["ip", "-o", "link", "show"], capture_output=True)
    except OSError:
        return []
    output = result.stdout.decode("utf-8")
    if not output:
        return []
    return parse_ip_link_output(output)