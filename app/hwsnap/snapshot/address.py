"""PCI address parsing.

Directory entries under ``/sys/bus/pci/devices`` and inside PCI bridge
device directories are named after the device's bus address, formatted as
``domain:bus:device.function`` (e.g. ``0000:00:1f.3``). The same directories
also hold entries that are not devices at all, so parsing never raises: a
name either is an address or it is not.
"""

import re
from dataclasses import dataclass

_PCI_ADDRESS_RE = re.compile(
    r"(?P<domain>[0-9a-fA-F]{4}):(?P<bus>[0-9a-fA-F]{2}):"
    r"(?P<device>[0-9a-fA-F]{2})\.(?P<function>[0-9a-fA-F])"
)


@dataclass(frozen=True, slots=True)
class PCIAddress:
    """A parsed PCI bus address.

    All fields are lower-case hexadecimal strings of fixed width.

    Attributes:
        domain: 4-digit PCI domain (segment).
        bus: 2-digit bus number.
        device: 2-digit device (slot) number.
        function: 1-digit function number.
    """

    domain: str
    bus: str
    device: str
    function: str

    def __str__(self) -> str:
        return f"{self.domain}:{self.bus}:{self.device}.{self.function}"


def parse_pci_address(name: str) -> PCIAddress | None:
    """Parse a directory entry name as a PCI address.

    Only an exact ``dddd:bb:dd.f`` match is accepted. Extra leading or
    trailing characters, wrong field widths, missing separators and
    non-hexadecimal digits all yield None.

    Args:
        name: Directory entry name to parse.

    Returns:
        The parsed PCIAddress, or None if the name is not an address.
    """
    match = _PCI_ADDRESS_RE.fullmatch(name)
    if match is None:
        return None
    return PCIAddress(
        domain=match["domain"].lower(),
        bus=match["bus"].lower(),
        device=match["device"].lower(),
        function=match["function"].lower(),
    )


def is_pci_address(name: str) -> bool:
    """Check whether a directory entry name is a PCI address."""
    return parse_pci_address(name) is not None
