from __future__ import annotations

import random

OCTETS = 6
DELIMITER = "-"


def new_mac_address(rng: random.Random | None = None, delimiter: str = DELIMITER) -> str:
    """
    Random MAC address, six two digit lowercase hex octets.

    No uniqueness against the service is attempted.
    """
    source = rng or random
    return delimiter.join(f"{source.randrange(256):02x}" for _ in range(OCTETS))
